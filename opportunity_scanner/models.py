"""
Canonical data models for AI opportunity analysis.

Every nested field is always present once a record has been adapted:
missing strings carry localized fallback text and missing lists are empty.
JSON output uses camelCase aliases (``model_dump(by_alias=True)``).
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Level(str, Enum):
    """Qualitative impact/effort level."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return {"High": 3, "Medium": 2, "Low": 1}[self.value]


class Provider(str, Enum):
    """Language model provider."""
    OPENAI = "openai"
    GOOGLE = "google"


class SchemaMode(str, Enum):
    """Response shape requested from the model."""
    NANO = "nano"          # compact schema
    STANDARD = "standard"  # detailed schema


class ModelTier(str, Enum):
    """Model size tier."""
    NANO = "nano"
    MINI = "mini"
    STANDARD = "standard"

    @property
    def schema_mode(self) -> SchemaMode:
        return SchemaMode.NANO if self is ModelTier.NANO else SchemaMode.STANDARD


class CanonicalModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Opportunity sub-records
# =============================================================================

class BusinessCase(CanonicalModel):
    problem_statement: str
    current_state: str
    ai_solution: str
    success_metrics: List[str] = Field(default_factory=list)


class ResourceNeeds(CanonicalModel):
    team_size: str
    estimated_budget: str
    skills: List[str] = Field(default_factory=list)


class RiskAssessment(CanonicalModel):
    technical: str
    business: str
    change: str


class Implementation(CanonicalModel):
    technical_requirements: List[str] = Field(default_factory=list)
    timeline: str
    resource_needs: ResourceNeeds
    risk_assessment: RiskAssessment


class Scenarios(CanonicalModel):
    conservative: str
    optimistic: str


class FinancialProjections(CanonicalModel):
    cost_savings: str
    revenue_increase: str
    investment_required: str
    roi_timeline: str
    scenarios: Scenarios


class Phases(CanonicalModel):
    phase1: str
    phase2: str
    phase3: str


class ChangeManagement(CanonicalModel):
    stakeholder_impact: str
    training_needs: str


class StrategicRecommendations(CanonicalModel):
    phases: Phases
    change_management: ChangeManagement
    vendor_recommendations: List[str] = Field(default_factory=list)
    success_criteria: List[str] = Field(default_factory=list)


class Opportunity(CanonicalModel):
    """One recommended AI-implementation initiative."""
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    impact: Level
    effort: Level
    priority: int = Field(ge=1, le=10)
    business_case: BusinessCase
    implementation: Implementation
    financial_projections: FinancialProjections
    strategic_recommendations: StrategicRecommendations

    @property
    def is_quick_win(self) -> bool:
        return self.impact is Level.HIGH and self.effort is Level.LOW

    @property
    def is_strategic_bet(self) -> bool:
        return self.impact is Level.HIGH and self.effort is Level.HIGH


# =============================================================================
# Aggregate root
# =============================================================================

class Analysis(CanonicalModel):
    """Output of one pipeline run: ordered opportunities plus run metadata."""
    id: str
    provider: Provider
    model: ModelTier
    language: str = "en"
    analysis_date: datetime
    company_excerpt: str = ""
    opportunities: Tuple[Opportunity, ...]

    @property
    def top_opportunity(self) -> Optional[Opportunity]:
        return self.opportunities[0] if self.opportunities else None


class ReportAggregates(CanonicalModel):
    """Summary statistics over an analysis. Currency figures are indicative only."""
    total_opportunities: int = Field(ge=0)
    high_priority: int = Field(ge=0)
    quick_wins: int = Field(ge=0)
    strategic_bets: int = Field(ge=0)
    total_cost_savings: int = Field(ge=0)
    total_revenue_increase: int = Field(ge=0)
    total_investment: int = Field(ge=0)
    roi_percentage: int = 0
