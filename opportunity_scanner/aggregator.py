"""
Summary statistics over an analysis.

Currency totals are a best-effort heuristic over free-text fields: only the
digit characters are kept ("$10,000 annually" -> 10000). Treat the results as
indicative, not as accounting.
"""

import logging
import math
import re
from typing import Iterable

from .models import Analysis, Opportunity, ReportAggregates

logger = logging.getLogger(__name__)

HIGH_PRIORITY_THRESHOLD = 7

_NON_DIGIT = re.compile(r'\D')


def extract_amount(text: str) -> int:
    """Keep only digit characters and parse them; no digits yields 0."""
    digits = _NON_DIGIT.sub('', text or '')
    return int(digits) if digits else 0


def roi_percentage(savings: int, revenue: int, investment: int) -> int:
    """Return round(100 * (savings + revenue) / investment), or 0 when undefined."""
    gain = savings + revenue
    if gain <= 0 or investment <= 0:
        return 0
    # Half-up rounding; values are non-negative here
    return int(math.floor(100 * gain / investment + 0.5))


def opportunity_roi(opportunity: Opportunity) -> int:
    """Indicative ROI for a single opportunity."""
    financials = opportunity.financial_projections
    return roi_percentage(
        extract_amount(financials.cost_savings),
        extract_amount(financials.revenue_increase),
        extract_amount(financials.investment_required),
    )


class ReportAggregator:
    """Computes report-level totals and categorizations."""

    def aggregate(self, analysis: Analysis) -> ReportAggregates:
        return self.aggregate_opportunities(analysis.opportunities)

    def aggregate_opportunities(self, opportunities: Iterable[Opportunity]) -> ReportAggregates:
        opportunities = list(opportunities)

        total_savings = sum(extract_amount(o.financial_projections.cost_savings) for o in opportunities)
        total_revenue = sum(extract_amount(o.financial_projections.revenue_increase) for o in opportunities)
        total_investment = sum(extract_amount(o.financial_projections.investment_required) for o in opportunities)

        aggregates = ReportAggregates(
            total_opportunities=len(opportunities),
            high_priority=sum(1 for o in opportunities if o.priority >= HIGH_PRIORITY_THRESHOLD),
            quick_wins=sum(1 for o in opportunities if o.is_quick_win),
            strategic_bets=sum(1 for o in opportunities if o.is_strategic_bet),
            total_cost_savings=total_savings,
            total_revenue_increase=total_revenue,
            total_investment=total_investment,
            roi_percentage=roi_percentage(total_savings, total_revenue, total_investment),
        )

        logger.debug(
            "Aggregated %d opportunities (savings=%d, revenue=%d, investment=%d, roi=%d%%)",
            aggregates.total_opportunities,
            total_savings,
            total_revenue,
            total_investment,
            aggregates.roi_percentage,
        )
        return aggregates
