"""
Unit tests for SchemaAdapter.

Covers required-field validation, priority coercion, compact-schema
expansion, fallback filling and priority ordering.
"""

import pytest

from opportunity_scanner.adapter import SchemaAdapter, SchemaShape, coerce_priority, detect_shape
from opportunity_scanner.errors import ValidationError
from opportunity_scanner.localization import get_locale
from opportunity_scanner.models import Level, Opportunity, SchemaMode


class TestCoercePriority:
    """Tests for priority coercion."""

    @pytest.mark.parametrize("value,expected", [(1, 1), (10, 10), ("7", 7), (7.0, 7), (" 4 ", 4), ("5.0", 5)])
    def test_valid_values(self, value, expected):
        """Test that whole numbers in range are accepted."""
        assert coerce_priority(value) == expected

    @pytest.mark.parametrize("value", [0, 11, -3, 7.5, "7.5", "high", True, None, [7]])
    def test_invalid_values(self, value):
        """Test that out-of-range, fractional and non-numeric values are rejected."""
        with pytest.raises(ValueError):
            coerce_priority(value)


class TestShapeDetection:
    """Tests for compact/detailed shape resolution."""

    def test_main_risks_marks_compact(self, compact_record):
        """Test that a mainRisks list marks the compact shape."""
        assert detect_shape(compact_record) is SchemaShape.COMPACT

    def test_risk_assessment_marks_detailed(self, detailed_record):
        """Test that a full risk breakdown marks the detailed shape."""
        assert detect_shape(detailed_record) is SchemaShape.DETAILED

    def test_missing_implementation_follows_schema_mode(self, detailed_record):
        """Test that records without implementation follow the mode hint."""
        del detailed_record["implementation"]

        assert detect_shape(detailed_record, SchemaMode.NANO) is SchemaShape.COMPACT
        assert detect_shape(detailed_record, SchemaMode.STANDARD) is SchemaShape.DETAILED


class TestSchemaAdapter:
    """Tests for SchemaAdapter.adapt."""

    @pytest.fixture
    def adapter(self):
        return SchemaAdapter(get_locale("en"))

    @pytest.fixture
    def fallbacks(self):
        return get_locale("en").fallbacks

    def test_detailed_record_maps_all_fields(self, adapter, detailed_record):
        """Test that a detailed record is copied into the canonical model."""
        (opportunity,) = adapter.adapt([detailed_record])

        assert isinstance(opportunity, Opportunity)
        assert opportunity.impact is Level.HIGH
        assert opportunity.effort is Level.LOW
        assert opportunity.priority == 9
        assert opportunity.implementation.resource_needs.team_size == "2 developers"
        assert opportunity.implementation.risk_assessment.change == "Support team resistance"
        assert opportunity.financial_projections.scenarios.optimistic == "$15,000 savings in year one"
        assert opportunity.strategic_recommendations.vendor_recommendations == ["OpenAI", "Intercom"]

    @pytest.mark.parametrize("field", ["title", "description", "impact", "effort", "priority"])
    def test_missing_required_field_identifies_record(self, adapter, record_factory, field):
        """Test that a missing required field fails with the record index and field."""
        records = [record_factory(), record_factory()]
        del records[1][field]

        with pytest.raises(ValidationError) as excinfo:
            adapter.adapt(records)

        assert excinfo.value.index == 1
        assert excinfo.value.field == field

    def test_blank_title_is_rejected(self, adapter, record_factory):
        """Test that whitespace-only required strings count as missing."""
        with pytest.raises(ValidationError) as excinfo:
            adapter.adapt([record_factory(title="   ")])

        assert excinfo.value.field == "title"

    @pytest.mark.parametrize("value", ["high", "HIGH", "Very High", "Critical"])
    def test_level_labels_are_case_sensitive(self, adapter, record_factory, value):
        """Test that impact labels must match exactly."""
        with pytest.raises(ValidationError) as excinfo:
            adapter.adapt([record_factory(impact=value)])

        assert excinfo.value.index == 0
        assert excinfo.value.field == "impact"

    @pytest.mark.parametrize("field", ["impact", "effort"])
    @pytest.mark.parametrize("value", [["High"], {"level": "High"}, 3, True])
    def test_non_string_levels_are_rejected(self, adapter, record_factory, field, value):
        """Test that list, object and numeric levels fail with the record index and field."""
        records = [record_factory(), record_factory(**{field: value})]

        with pytest.raises(ValidationError) as excinfo:
            adapter.adapt(records)

        assert excinfo.value.index == 1
        assert excinfo.value.field == field

    def test_fractional_priority_is_rejected(self, adapter, record_factory):
        """Test that a fractional priority fails validation."""
        with pytest.raises(ValidationError) as excinfo:
            adapter.adapt([record_factory(), record_factory(), record_factory(priority=6.5)])

        assert excinfo.value.index == 2
        assert excinfo.value.field == "priority"

    def test_non_object_record_is_rejected(self, adapter, record_factory):
        """Test that array entries that are not objects fail validation."""
        with pytest.raises(ValidationError) as excinfo:
            adapter.adapt([record_factory(), "just a string"])

        assert excinfo.value.index == 1

    def test_empty_list_is_rejected(self, adapter):
        """Test that an empty record list fails validation."""
        with pytest.raises(ValidationError):
            adapter.adapt([])

    def test_sorted_by_priority_descending_and_stable(self, adapter, record_factory):
        """Test descending priority order with ties in input order."""
        records = [
            record_factory(title="A", priority=5),
            record_factory(title="B", priority=9),
            record_factory(title="C", priority=5),
            record_factory(title="D", priority="9"),
            record_factory(title="E", priority=1),
        ]

        titles = [o.title for o in adapter.adapt(records)]

        assert titles == ["B", "D", "A", "C", "E"]

    def test_compact_two_risks_fill_third_with_fallback(self, adapter, compact_record, fallbacks):
        """Test positional risk mapping with a fallback for the missing third risk."""
        (opportunity,) = adapter.adapt([compact_record], SchemaMode.NANO)
        risks = opportunity.implementation.risk_assessment

        assert risks.technical == "Poor scan quality"
        assert risks.business == "Vendor lock-in"
        assert risks.change == fallbacks["assessment_needed"]

    def test_compact_resources_map_directly(self, adapter, compact_record):
        """Test that compact team size and budget carry over."""
        (opportunity,) = adapter.adapt([compact_record])
        resources = opportunity.implementation.resource_needs

        assert resources.team_size == "1 developer"
        assert resources.estimated_budget == "$8,000"
        assert resources.skills == []

    def test_compact_missing_resources_use_tbd(self, adapter, compact_record, fallbacks):
        """Test TBD fallback for absent team size and budget."""
        del compact_record["implementation"]["teamSize"]
        del compact_record["implementation"]["estimatedBudget"]

        (opportunity,) = adapter.adapt([compact_record])
        resources = opportunity.implementation.resource_needs

        assert resources.team_size == fallbacks["tbd"]
        assert resources.estimated_budget == fallbacks["tbd"]

    def test_compact_null_resources_use_nested_values(self, adapter, compact_record):
        """Test that null compact resource fields fall through to resourceNeeds."""
        implementation = compact_record["implementation"]
        implementation["teamSize"] = None
        implementation["estimatedBudget"] = None
        implementation["resourceNeeds"] = {
            "teamSize": "3 analysts",
            "estimatedBudget": "$12,000",
            "skills": ["OCR tuning"],
        }

        (opportunity,) = adapter.adapt([compact_record])
        resources = opportunity.implementation.resource_needs

        assert resources.team_size == "3 analysts"
        assert resources.estimated_budget == "$12,000"
        assert resources.skills == ["OCR tuning"]

    def test_compact_synthesizes_strategy_skeleton(self, adapter, compact_record, fallbacks):
        """Test the three-phase skeleton and borrowed success criteria."""
        (opportunity,) = adapter.adapt([compact_record])
        strategy = opportunity.strategic_recommendations

        assert strategy.phases.phase1 == fallbacks["phase1"]
        assert strategy.phases.phase2 == fallbacks["phase2"]
        assert strategy.phases.phase3 == fallbacks["phase3"]
        assert strategy.success_criteria == ["90% fields extracted correctly", "Entry time halved"]
        assert strategy.change_management.training_needs == fallbacks["training_needs"]

    def test_compact_without_metrics_uses_fallback_criteria(self, adapter, compact_record, fallbacks):
        """Test fallback success criteria when the business case has no metrics."""
        del compact_record["businessCase"]["successMetrics"]

        (opportunity,) = adapter.adapt([compact_record])

        assert opportunity.strategic_recommendations.success_criteria == [fallbacks["success_criteria"]]

    def test_detailed_record_missing_optional_objects(self, adapter, record_factory, fallbacks):
        """Test that absent optional objects are filled rather than left unset."""
        record = record_factory()
        del record["strategicRecommendations"]
        del record["financialProjections"]["scenarios"]
        del record["implementation"]["resourceNeeds"]

        (opportunity,) = adapter.adapt([record])

        assert opportunity.strategic_recommendations.phases.phase2 == fallbacks["phase2"]
        assert opportunity.strategic_recommendations.vendor_recommendations == []
        assert opportunity.financial_projections.scenarios.conservative == fallbacks["scenario_conservative"]
        assert opportunity.implementation.resource_needs.team_size == fallbacks["tbd"]

    def test_fallback_text_follows_language(self, compact_record):
        """Test that fallback phrases come from the requested language."""
        french = get_locale("fr")
        (opportunity,) = SchemaAdapter(french).adapt([compact_record])

        assert opportunity.implementation.risk_assessment.change == french.fallbacks["assessment_needed"]

    def test_numeric_text_fields_become_strings(self, adapter, record_factory):
        """Test that numbers in free-text fields are rendered as text."""
        record = record_factory()
        record["financialProjections"]["costSavings"] = 12000

        (opportunity,) = adapter.adapt([record])

        assert opportunity.financial_projections.cost_savings == "12000"
