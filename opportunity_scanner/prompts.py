"""
Prompt construction for opportunity analysis.

The lightest model tier gets the compact schema; the other tiers get the
detailed schema. The response is always requested as a bare JSON array.
"""

from .models import SchemaMode

LANGUAGE_NAMES = {
    "en": "English",
    "fr": "French",
}

DESCRIPTION_LIMIT = 8000

SYSTEM_PROMPT = (
    "You are a senior AI strategy consultant. You identify practical, high-value "
    "AI implementation opportunities for businesses and return them as strict JSON."
)

COMPACT_SCHEMA = """[
  {
    "title": "Short opportunity name",
    "description": "Two or three sentences describing the opportunity",
    "impact": "High" | "Medium" | "Low",
    "effort": "High" | "Medium" | "Low",
    "priority": 1-10,
    "businessCase": {
      "problemStatement": "...",
      "currentState": "...",
      "aiSolution": "...",
      "successMetrics": ["...", "..."]
    },
    "implementation": {
      "technicalRequirements": ["...", "..."],
      "timeline": "e.g. 3-4 months",
      "teamSize": "e.g. 2-3 people",
      "estimatedBudget": "e.g. $25,000",
      "mainRisks": ["technical risk", "business risk", "change risk"]
    },
    "financialProjections": {
      "costSavings": "e.g. $40,000 annually",
      "revenueIncrease": "e.g. $15,000 annually",
      "investmentRequired": "e.g. $25,000",
      "roiTimeline": "e.g. 8 months"
    }
  }
]"""

DETAILED_SCHEMA = """[
  {
    "title": "Short opportunity name",
    "description": "Two or three sentences describing the opportunity",
    "impact": "High" | "Medium" | "Low",
    "effort": "High" | "Medium" | "Low",
    "priority": 1-10,
    "businessCase": {
      "problemStatement": "...",
      "currentState": "...",
      "aiSolution": "...",
      "successMetrics": ["...", "..."]
    },
    "implementation": {
      "technicalRequirements": ["...", "..."],
      "timeline": "e.g. 3-4 months",
      "resourceNeeds": {
        "teamSize": "e.g. 2-3 people",
        "estimatedBudget": "e.g. $25,000",
        "skills": ["...", "..."]
      },
      "riskAssessment": {
        "technical": "...",
        "business": "...",
        "change": "..."
      }
    },
    "financialProjections": {
      "costSavings": "e.g. $40,000 annually",
      "revenueIncrease": "e.g. $15,000 annually",
      "investmentRequired": "e.g. $25,000",
      "roiTimeline": "e.g. 8 months",
      "scenarios": {
        "conservative": "...",
        "optimistic": "..."
      }
    },
    "strategicRecommendations": {
      "phases": {
        "phase1": "Days 1-30: ...",
        "phase2": "Days 31-60: ...",
        "phase3": "Days 61-90: ..."
      },
      "changeManagement": {
        "stakeholderImpact": "...",
        "trainingNeeds": "..."
      },
      "vendorRecommendations": ["...", "..."],
      "successCriteria": ["...", "..."]
    }
  }
]"""


def build_prompt(company_description: str, schema_mode: SchemaMode, language: str = "en") -> str:
    """
    Build the user prompt for an opportunity scan.

    Args:
        company_description: Free-text business description
        schema_mode: Compact (nano) or detailed (standard) response shape
        language: Output language code; unknown codes fall back to English

    Returns:
        Prompt text
    """
    language_name = LANGUAGE_NAMES.get((language or "").strip().lower(), LANGUAGE_NAMES["en"])
    schema = COMPACT_SCHEMA if schema_mode is SchemaMode.NANO else DETAILED_SCHEMA
    count = "3-5" if schema_mode is SchemaMode.NANO else "5-7"

    return f"""Analyze the following business and identify {count} AI implementation opportunities.

Business description:
{company_description.strip()[:DESCRIPTION_LIMIT]}

Rules:
- "impact" and "effort" must be exactly "High", "Medium" or "Low".
- "priority" is an integer from 1 (lowest) to 10 (highest).
- Monetary fields are short phrases with a single figure, e.g. "$40,000 annually".
- Write every text value in {language_name}; keep the JSON keys and the impact/effort values in English.

Return ONLY a JSON array with this structure, no markdown formatting or explanation:
{schema}"""
