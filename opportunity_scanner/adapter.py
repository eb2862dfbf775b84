"""
Schema adaptation from loosely-typed records to canonical Opportunity models.

Two response shapes exist. The compact shape (lightest model tier) carries a
``mainRisks`` list under ``implementation`` and omits the risk breakdown,
resource block, scenarios and strategic recommendations. The detailed shape
carries everything. The shape is resolved once per record; after that every
record goes through the same fill step, so the canonical model never has a
missing field.
"""

import logging
import math
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import ValidationError
from .localization import Locale, get_locale
from .models import (
    BusinessCase,
    ChangeManagement,
    FinancialProjections,
    Implementation,
    Level,
    Opportunity,
    Phases,
    ResourceNeeds,
    RiskAssessment,
    Scenarios,
    SchemaMode,
    StrategicRecommendations,
)

logger = logging.getLogger(__name__)


REQUIRED_FIELDS = ("title", "description", "impact", "effort", "priority")
LEVEL_VALUES = {level.value for level in Level}
PRIORITY_RANGE = (1, 10)


class SchemaShape(Enum):
    """Response shape of a single record."""
    COMPACT = "compact"
    DETAILED = "detailed"


def detect_shape(record: Dict[str, Any], schema_mode: SchemaMode = SchemaMode.STANDARD) -> SchemaShape:
    """Resolve the shape of a record from its compact-schema marker."""
    implementation = record.get("implementation")
    if isinstance(implementation, dict):
        if isinstance(implementation.get("mainRisks"), list) and "riskAssessment" not in implementation:
            return SchemaShape.COMPACT
        return SchemaShape.DETAILED
    return SchemaShape.COMPACT if schema_mode is SchemaMode.NANO else SchemaShape.DETAILED


def coerce_priority(value: Any) -> int:
    """
    Coerce a priority value to an integer in [1, 10].

    Raises ValueError for booleans, non-numeric text, fractional values and
    anything out of range.
    """
    if isinstance(value, bool):
        raise ValueError("priority must be a number")
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValueError(f"priority must be a whole number, got {value}")
        number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = int(text)
        except ValueError:
            try:
                as_float = float(text)
            except ValueError:
                raise ValueError(f"priority is not numeric: {value!r}") from None
            if not math.isfinite(as_float) or not as_float.is_integer():
                raise ValueError(f"priority must be a whole number, got {value!r}")
            number = int(as_float)
    else:
        raise ValueError(f"priority has unsupported type {type(value).__name__}")

    low, high = PRIORITY_RANGE
    if not low <= number <= high:
        raise ValueError(f"priority {number} is outside [{low}, {high}]")
    return number


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any, fallback: str) -> str:
    """Render a scalar as text, or the fallback when it is empty."""
    if _is_blank(value):
        return fallback
    if isinstance(value, (list, tuple)):
        items = _text_list(value)
        return "; ".join(items) if items else fallback
    if isinstance(value, dict):
        parts = [f"{key}: {item}" for key, item in value.items() if not _is_blank(item)]
        return "; ".join(parts) if parts else fallback
    return str(value).strip()


def _text_list(value: Any) -> List[str]:
    """Render a list of scalars as a list of non-blank strings."""
    if _is_blank(value):
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [str(item).strip() for item in value if not _is_blank(item) and not isinstance(item, (dict, list))]


class SchemaAdapter:
    """Adapts normalized records into canonical opportunities."""

    def __init__(self, locale: Optional[Locale] = None):
        self.locale = locale or get_locale(None)

    def adapt(
        self,
        records: Sequence[Any],
        schema_mode: SchemaMode = SchemaMode.STANDARD,
    ) -> Tuple[Opportunity, ...]:
        """
        Validate and adapt every record, then order by descending priority.

        Args:
            records: Parsed records from the normalizer
            schema_mode: Requested response shape, used when a record carries no marker

        Returns:
            Opportunities sorted by priority (stable on ties)

        Raises:
            ValidationError: for the first non-conforming record
        """
        if not records:
            raise ValidationError("model returned no opportunities", field="opportunities")

        opportunities = []
        compact_count = 0
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise ValidationError("record is not a JSON object", index=index)
            core = self._validate_core(index, record)
            shape = detect_shape(record, schema_mode)
            if shape is SchemaShape.COMPACT:
                compact_count += 1
                record = self._expand_compact(record)
            opportunities.append(self._build(core, record))

        if compact_count:
            logger.info("Expanded %d compact-schema records", compact_count)

        # sorted() is stable, so equal priorities keep input order
        return tuple(sorted(opportunities, key=lambda o: o.priority, reverse=True))

    def _validate_core(self, index: int, record: Dict[str, Any]) -> Dict[str, Any]:
        for field in REQUIRED_FIELDS:
            if _is_blank(record.get(field)):
                raise ValidationError("required field is missing or empty", index=index, field=field)

        for field in ("title", "description"):
            if not isinstance(record[field], str):
                raise ValidationError("must be a string", index=index, field=field)

        for field in ("impact", "effort"):
            if not isinstance(record[field], str) or record[field] not in LEVEL_VALUES:
                raise ValidationError(
                    f"must be one of {sorted(LEVEL_VALUES)}, got {record[field]!r}",
                    index=index,
                    field=field,
                )

        try:
            priority = coerce_priority(record["priority"])
        except ValueError as e:
            raise ValidationError(str(e), index=index, field="priority") from e

        return {
            "title": record["title"].strip(),
            "description": record["description"].strip(),
            "impact": Level(record["impact"]),
            "effort": Level(record["effort"]),
            "priority": priority,
        }

    def _expand_compact(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Synthesize the detailed shape from a compact record."""
        fallback = self.locale.fallback
        implementation = _as_dict(record.get("implementation"))
        business_case = _as_dict(record.get("businessCase"))
        nested_resources = _as_dict(implementation.get("resourceNeeds"))

        risks = _text_list(implementation.get("mainRisks"))
        risk_keys = ("technical", "business", "change")
        risk_assessment = {
            key: risks[position] if position < len(risks) else fallback("assessment_needed")
            for position, key in enumerate(risk_keys)
        }

        resource_needs = {
            "teamSize": _text(
                implementation.get("teamSize") or nested_resources.get("teamSize"), fallback("tbd")
            ),
            "estimatedBudget": _text(
                implementation.get("estimatedBudget") or nested_resources.get("estimatedBudget"),
                fallback("tbd"),
            ),
            "skills": _text_list(implementation.get("skills") or nested_resources.get("skills")),
        }

        success_criteria = _text_list(business_case.get("successMetrics")) or [fallback("success_criteria")]

        expanded = dict(record)
        expanded["implementation"] = {
            "technicalRequirements": implementation.get("technicalRequirements"),
            "timeline": implementation.get("timeline"),
            "resourceNeeds": resource_needs,
            "riskAssessment": risk_assessment,
        }
        expanded["strategicRecommendations"] = {
            "phases": {
                "phase1": fallback("phase1"),
                "phase2": fallback("phase2"),
                "phase3": fallback("phase3"),
            },
            "changeManagement": {
                "stakeholderImpact": fallback("stakeholder_impact"),
                "trainingNeeds": fallback("training_needs"),
            },
            "vendorRecommendations": [],
            "successCriteria": success_criteria,
        }
        return expanded

    def _build(self, core: Dict[str, Any], record: Dict[str, Any]) -> Opportunity:
        """Fill every nested field, defaulting absent objects to empty dicts."""
        fallback = self.locale.fallback
        missing = fallback("not_specified")

        business_case = _as_dict(record.get("businessCase"))
        implementation = _as_dict(record.get("implementation"))
        resources = _as_dict(implementation.get("resourceNeeds"))
        risks = _as_dict(implementation.get("riskAssessment"))
        financials = _as_dict(record.get("financialProjections"))
        scenarios = _as_dict(financials.get("scenarios"))
        strategy = _as_dict(record.get("strategicRecommendations"))
        phases = _as_dict(strategy.get("phases"))
        change = _as_dict(strategy.get("changeManagement"))

        return Opportunity(
            **core,
            business_case=BusinessCase(
                problem_statement=_text(business_case.get("problemStatement"), missing),
                current_state=_text(business_case.get("currentState"), missing),
                ai_solution=_text(business_case.get("aiSolution"), missing),
                success_metrics=_text_list(business_case.get("successMetrics")),
            ),
            implementation=Implementation(
                technical_requirements=_text_list(implementation.get("technicalRequirements")),
                timeline=_text(implementation.get("timeline"), missing),
                resource_needs=ResourceNeeds(
                    team_size=_text(resources.get("teamSize"), fallback("tbd")),
                    estimated_budget=_text(resources.get("estimatedBudget"), fallback("tbd")),
                    skills=_text_list(resources.get("skills")),
                ),
                risk_assessment=RiskAssessment(
                    technical=_text(risks.get("technical"), fallback("assessment_needed")),
                    business=_text(risks.get("business"), fallback("assessment_needed")),
                    change=_text(risks.get("change"), fallback("assessment_needed")),
                ),
            ),
            financial_projections=FinancialProjections(
                cost_savings=_text(financials.get("costSavings"), missing),
                revenue_increase=_text(financials.get("revenueIncrease"), missing),
                investment_required=_text(financials.get("investmentRequired"), missing),
                roi_timeline=_text(financials.get("roiTimeline"), missing),
                scenarios=Scenarios(
                    conservative=_text(scenarios.get("conservative"), fallback("scenario_conservative")),
                    optimistic=_text(scenarios.get("optimistic"), fallback("scenario_optimistic")),
                ),
            ),
            strategic_recommendations=StrategicRecommendations(
                phases=Phases(
                    phase1=_text(phases.get("phase1"), fallback("phase1")),
                    phase2=_text(phases.get("phase2"), fallback("phase2")),
                    phase3=_text(phases.get("phase3"), fallback("phase3")),
                ),
                change_management=ChangeManagement(
                    stakeholder_impact=_text(change.get("stakeholderImpact"), fallback("stakeholder_impact")),
                    training_needs=_text(change.get("trainingNeeds"), fallback("training_needs")),
                ),
                vendor_recommendations=_text_list(strategy.get("vendorRecommendations")),
                success_criteria=_text_list(strategy.get("successCriteria")),
            ),
        )
