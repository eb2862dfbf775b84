"""
Shared fixtures: sample model records in both response shapes.
"""

import copy
import json
from datetime import datetime, timezone

import pytest

from opportunity_scanner.adapter import SchemaAdapter
from opportunity_scanner.localization import get_locale
from opportunity_scanner.models import Analysis, ModelTier, Provider


DETAILED_RECORD = {
    "title": "Customer Support Chatbot",
    "description": "Deploy a conversational assistant that answers common customer questions around the clock.",
    "impact": "High",
    "effort": "Low",
    "priority": 9,
    "businessCase": {
        "problemStatement": "Support staff spend most of their day on repetitive questions.",
        "currentState": "Email and phone support only, 24h response time.",
        "aiSolution": "An LLM-based assistant trained on the help centre content.",
        "successMetrics": ["50% fewer tickets", "Response time under 1 minute"]
    },
    "implementation": {
        "technicalRequirements": ["Help centre export", "Chat widget"],
        "timeline": "3 months",
        "resourceNeeds": {
            "teamSize": "2 developers",
            "estimatedBudget": "$20,000",
            "skills": ["Prompt engineering", "Web development"]
        },
        "riskAssessment": {
            "technical": "Hallucinated answers",
            "business": "Customer frustration with automation",
            "change": "Support team resistance"
        }
    },
    "financialProjections": {
        "costSavings": "$10,000 annually",
        "revenueIncrease": "$2,000 annually",
        "investmentRequired": "$20,000",
        "roiTimeline": "12 months",
        "scenarios": {
            "conservative": "$6,000 savings in year one",
            "optimistic": "$15,000 savings in year one"
        }
    },
    "strategicRecommendations": {
        "phases": {
            "phase1": "Collect and clean FAQ content",
            "phase2": "Pilot the assistant on the website",
            "phase3": "Roll out to all channels"
        },
        "changeManagement": {
            "stakeholderImpact": "Support agents move to complex cases",
            "trainingNeeds": "Escalation workflow training"
        },
        "vendorRecommendations": ["OpenAI", "Intercom"],
        "successCriteria": ["Deflection rate above 40%"]
    }
}

COMPACT_RECORD = {
    "title": "Invoice Data Extraction",
    "description": "Extract invoice fields automatically with document AI.",
    "impact": "Medium",
    "effort": "Medium",
    "priority": 6,
    "businessCase": {
        "problemStatement": "Manual invoice entry is slow.",
        "currentState": "Two clerks key invoices by hand.",
        "aiSolution": "OCR plus an extraction model.",
        "successMetrics": ["90% fields extracted correctly", "Entry time halved"]
    },
    "implementation": {
        "technicalRequirements": ["Scanned invoice archive"],
        "timeline": "2 months",
        "teamSize": "1 developer",
        "estimatedBudget": "$8,000",
        "mainRisks": ["Poor scan quality", "Vendor lock-in"]
    },
    "financialProjections": {
        "costSavings": "$5,000 annually",
        "revenueIncrease": "None",
        "investmentRequired": "$8,000",
        "roiTimeline": "18 months"
    }
}


def make_record(base=None, **overrides):
    """Deep copy of a sample record with top-level overrides applied."""
    record = copy.deepcopy(base if base is not None else DETAILED_RECORD)
    record.update(overrides)
    return record


@pytest.fixture
def detailed_record():
    return make_record(DETAILED_RECORD)


@pytest.fixture
def compact_record():
    return make_record(COMPACT_RECORD)


@pytest.fixture
def record_factory():
    """Factory building detailed (or given-base) records with overrides."""
    return make_record


@pytest.fixture
def raw_response():
    """A realistic fenced model response with three records."""
    records = [
        make_record(DETAILED_RECORD),
        make_record(COMPACT_RECORD),
        make_record(DETAILED_RECORD, title="Demand Forecasting", impact="High", effort="High", priority=7),
    ]
    return "Here are the opportunities:\n```json\n" + json.dumps(records, indent=2) + "\n```"


@pytest.fixture
def sample_analysis():
    """Canonical analysis built from three sample records."""
    records = [
        make_record(DETAILED_RECORD),
        make_record(COMPACT_RECORD),
        make_record(DETAILED_RECORD, title="Demand Forecasting", impact="High", effort="High", priority=7),
    ]
    opportunities = SchemaAdapter(get_locale("en")).adapt(records)
    return Analysis(
        id="test-analysis",
        provider=Provider.OPENAI,
        model=ModelTier.STANDARD,
        language="en",
        analysis_date=datetime(2026, 3, 1, tzinfo=timezone.utc),
        company_excerpt="A regional retailer with 40 stores and an online shop.",
        opportunities=opportunities,
    )
