"""
Document rendering for opportunity analyses.

Rendering happens in three phases:

1. Layout: sections are walked in a fixed order and blocks are placed on
   pages with a vertical cursor (points on a US Letter page). Headings never
   start in the near-bottom band of a page; each opportunity after the first
   starts on a fresh page.
2. HTML: the page list is rendered through a Jinja2 template, one
   ``<section class="page">`` per laid-out page.
3. Finalize: WeasyPrint converts the HTML to PDF on a worker thread. The
   coroutine resolves once the bytes are complete.

Every user-facing phrase comes from the Locale; this module only supplies
glyphs and number formatting.
"""

import asyncio
import io
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from jinja2 import Environment, PackageLoader, select_autoescape

from .aggregator import HIGH_PRIORITY_THRESHOLD, opportunity_roi
from .errors import RenderError
from .localization import Locale
from .models import Analysis, Level, Opportunity, ReportAggregates

logger = logging.getLogger(__name__)


# Page geometry in points (US Letter)
PAGE_HEIGHT = 792.0
MARGIN_TOP = 54.0
MARGIN_BOTTOM = 54.0
CONTENT_BOTTOM = PAGE_HEIGHT - MARGIN_BOTTOM
# Headings starting below this line are pushed to the next page
HEADER_THRESHOLD = CONTENT_BOTTOM - 96.0

FILLED_GLYPH = "■"
EMPTY_GLYPH = "□"
BAR_WIDTH = 3
TOP_OPPORTUNITY_COUNT = 3

MEDIA_TYPE = "application/pdf"


class Section(str, Enum):
    """Document sections in rendering order."""
    COVER = "cover"
    EXECUTIVE_SUMMARY = "executive_summary"
    OPPORTUNITIES = "opportunities"
    STRATEGY = "strategy"
    FINANCIALS = "financials"
    ACTION_PLAN = "action_plan"
    FOOTER = "footer"


class BlockKind(str, Enum):
    TITLE = "title"
    LEAD = "lead"
    HEADING = "heading"
    SUBHEADING = "subheading"
    LABEL = "label"
    PARAGRAPH = "paragraph"
    BULLET = "bullet"
    FIELD = "field"
    METRIC = "metric"
    MATRIX_HEADER = "matrix_header"
    MATRIX_ROW = "matrix_row"
    NOTE = "note"
    RULE = "rule"


class BreakReason(str, Enum):
    SECTION = "section"          # unconditional, section starts on a fresh page
    OPPORTUNITY = "opportunity"  # unconditional, between opportunity subsections
    THRESHOLD = "threshold"      # heading would start in the near-bottom band
    OVERFLOW = "overflow"        # body block would cross the bottom margin


HEADING_KINDS = frozenset({BlockKind.TITLE, BlockKind.HEADING, BlockKind.SUBHEADING, BlockKind.LABEL})
# blocks never left as the last line of a page
KEEP_WITH_NEXT = HEADING_KINDS | {BlockKind.MATRIX_HEADER}

# kind -> (line height, characters per line, spacing after)
BLOCK_METRICS = {
    BlockKind.TITLE: (34.0, 34, 16.0),
    BlockKind.LEAD: (20.0, 60, 18.0),
    BlockKind.HEADING: (24.0, 48, 10.0),
    BlockKind.SUBHEADING: (18.0, 62, 6.0),
    BlockKind.LABEL: (15.0, 85, 2.0),
    BlockKind.PARAGRAPH: (15.0, 92, 8.0),
    BlockKind.BULLET: (15.0, 88, 3.0),
    BlockKind.FIELD: (15.0, 88, 4.0),
    BlockKind.METRIC: (18.0, 80, 4.0),
    BlockKind.MATRIX_HEADER: (16.0, 200, 2.0),
    BlockKind.MATRIX_ROW: (16.0, 48, 2.0),
    BlockKind.NOTE: (12.0, 110, 6.0),
    BlockKind.RULE: (1.0, 1, 11.0),
}


def level_bar(level: Level) -> str:
    """Fixed-width bar, filled left to right by level rank."""
    return FILLED_GLYPH * level.rank + EMPTY_GLYPH * (BAR_WIDTH - level.rank)


def format_amount(amount: int) -> str:
    return f"${amount:,}"


def report_filename(analysis_id: str) -> str:
    return f"ai-opportunities-{analysis_id}.pdf"


@dataclass
class Block:
    kind: BlockKind
    section: Section
    text: str = ""
    label: str = ""
    cells: Tuple[str, ...] = ()
    top: float = 0.0
    height: float = 0.0

    def measure(self) -> float:
        line_height, per_line, spacing = BLOCK_METRICS[self.kind]
        if self.kind is BlockKind.RULE:
            return line_height + spacing
        if self.kind is BlockKind.MATRIX_ROW:
            content = self.cells[0] if self.cells else ""
        elif self.label:
            content = f"{self.label}: {self.text}"
        else:
            content = self.text
        lines = max(1, math.ceil(len(content) / per_line))
        return lines * line_height + spacing


@dataclass
class Page:
    number: int
    blocks: List[Block] = field(default_factory=list)

    @property
    def sections(self) -> List[Section]:
        seen = []
        for block in self.blocks:
            if block.section not in seen:
                seen.append(block.section)
        return seen


@dataclass(frozen=True)
class PageBreak:
    section: Section
    reason: BreakReason
    page_number: int  # number of the page the break opened


@dataclass
class RenderedDocument:
    """Laid-out document ready for PDF finalization."""
    analysis_id: str
    language: str
    pages: List[Page]
    breaks: List[PageBreak]
    html: str = ""

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def filename(self) -> str:
        return report_filename(self.analysis_id)

    @property
    def media_type(self) -> str:
        return MEDIA_TYPE

    def breaks_in(self, section: Section) -> List[PageBreak]:
        return [b for b in self.breaks if b.section is section]

    def blocks_in(self, section: Section) -> List[Block]:
        return [block for page in self.pages for block in page.blocks if block.section is section]


class PageLayout:
    """Places blocks on pages while tracking the vertical cursor."""

    def __init__(self):
        self.pages = [Page(number=1)]
        self.breaks: List[PageBreak] = []
        self.cursor = MARGIN_TOP
        self.section = Section.COVER

    @property
    def current_page(self) -> Page:
        return self.pages[-1]

    def begin_section(self, section: Section, fresh_page: bool = False):
        self.section = section
        if fresh_page:
            self.page_break(BreakReason.SECTION)

    def page_break(self, reason: BreakReason):
        """Open a new page; a page with no blocks yet is reused."""
        if not self.current_page.blocks:
            return
        self.pages.append(Page(number=len(self.pages) + 1))
        self.breaks.append(PageBreak(self.section, reason, self.current_page.number))
        self.cursor = MARGIN_TOP

    def add(self, kind: BlockKind, text: str = "", label: str = "", cells: Sequence[str] = ()) -> Block:
        block = Block(kind=kind, section=self.section, text=text, label=label, cells=tuple(cells))
        block.height = block.measure()

        if kind in HEADING_KINDS and self.cursor > HEADER_THRESHOLD:
            self._break_before(BreakReason.THRESHOLD)
        elif self.cursor + block.height > CONTENT_BOTTOM:
            self._break_before(BreakReason.OVERFLOW)

        self._place(block)
        return block

    def _break_before(self, reason: BreakReason):
        """Open a new page for the next block, carrying any headings that end the current one."""
        blocks = self.current_page.blocks
        count = 0
        while count < len(blocks) and blocks[-1 - count].kind in KEEP_WITH_NEXT:
            count += 1
        if blocks and count == len(blocks):
            # a page holding only headings keeps the next block too
            return

        carried = blocks[len(blocks) - count:]
        del blocks[len(blocks) - count:]
        self.page_break(reason)
        for heading in carried:
            self._place(heading)

    def _place(self, block: Block):
        block.top = self.cursor
        self.current_page.blocks.append(block)
        self.cursor += block.height


class DocumentRenderer:
    """Renders an Analysis and its aggregates into a paginated report."""

    def __init__(self, pdf_writer: Optional[Callable[[str], bytes]] = None, environment: Optional[Environment] = None):
        """
        Args:
            pdf_writer: Callable turning HTML into PDF bytes (defaults to WeasyPrint)
            environment: Jinja2 environment holding ``report.html``
        """
        self._pdf_writer = pdf_writer or write_pdf
        self._environment = environment or Environment(
            loader=PackageLoader("opportunity_scanner", "templates"),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, analysis: Analysis, aggregates: ReportAggregates, locale: Locale) -> RenderedDocument:
        """
        Lay out the document and render its HTML.

        Raises:
            RenderError: if any part of document construction fails
        """
        try:
            document = self.layout(analysis, aggregates, locale)
            document.html = self._environment.get_template("report.html").render(
                document=document,
                title=locale.label("report_title"),
                page_label=locale.label("page_label"),
            )
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Document construction failed for analysis {analysis.id}: {e}") from e

        logger.info(
            "Laid out analysis %s: %d pages, %d page breaks",
            analysis.id, document.page_count, len(document.breaks)
        )
        return document

    async def finalize(self, document: RenderedDocument) -> bytes:
        """Write the PDF on a worker thread and resolve with its bytes."""
        loop = asyncio.get_running_loop()
        try:
            pdf_bytes = await loop.run_in_executor(None, self._pdf_writer, document.html)
        except Exception as e:
            raise RenderError(f"PDF generation failed for analysis {document.analysis_id}: {e}") from e

        if not pdf_bytes:
            raise RenderError(f"PDF generation produced no output for analysis {document.analysis_id}")
        logger.info("Finalized %s (%d bytes)", document.filename, len(pdf_bytes))
        return pdf_bytes

    def layout(self, analysis: Analysis, aggregates: ReportAggregates, locale: Locale) -> RenderedDocument:
        if not analysis.opportunities:
            raise RenderError(f"Analysis {analysis.id} has no opportunities to render")

        layout = PageLayout()
        self._cover(layout, analysis, locale)
        self._executive_summary(layout, analysis, aggregates, locale)
        self._opportunity_details(layout, analysis, locale)
        self._strategic_recommendations(layout, analysis, locale)
        self._financial_projections(layout, analysis, aggregates, locale)
        self._action_plan(layout, analysis, locale)
        self._footer(layout, analysis, locale)

        return RenderedDocument(
            analysis_id=analysis.id,
            language=locale.code,
            pages=layout.pages,
            breaks=layout.breaks,
        )

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _cover(self, layout: PageLayout, analysis: Analysis, locale: Locale):
        t = locale.label
        layout.begin_section(Section.COVER)
        layout.add(BlockKind.TITLE, t("report_title"))
        layout.add(BlockKind.LEAD, t("report_subtitle"))
        layout.add(BlockKind.FIELD, analysis.analysis_date.strftime("%Y-%m-%d"), label=t("prepared_on"))
        layout.add(BlockKind.FIELD, analysis.id, label=t("analysis_id"))
        layout.add(BlockKind.FIELD, f"{analysis.provider.value} / {analysis.model.value}", label=t("generated_with"))
        layout.add(BlockKind.FIELD, str(len(analysis.opportunities)), label=t("opportunities_identified"))
        layout.add(BlockKind.HEADING, t("company_profile"))
        layout.add(BlockKind.PARAGRAPH, analysis.company_excerpt or locale.fallback("not_specified"))

    def _executive_summary(self, layout: PageLayout, analysis: Analysis, aggregates: ReportAggregates, locale: Locale):
        t = locale.label
        layout.begin_section(Section.EXECUTIVE_SUMMARY, fresh_page=True)
        layout.add(BlockKind.HEADING, t("executive_summary"))
        layout.add(BlockKind.PARAGRAPH, t(
            "summary_intro",
            total=aggregates.total_opportunities,
            high_priority=aggregates.high_priority,
            quick_wins=aggregates.quick_wins,
            strategic_bets=aggregates.strategic_bets,
        ))

        layout.add(BlockKind.SUBHEADING, t("key_metrics"))
        metrics = (
            ("total_opportunities", str(aggregates.total_opportunities)),
            ("high_priority", str(aggregates.high_priority)),
            ("quick_wins", str(aggregates.quick_wins)),
            ("strategic_bets", str(aggregates.strategic_bets)),
            ("total_cost_savings", format_amount(aggregates.total_cost_savings)),
            ("total_revenue_increase", format_amount(aggregates.total_revenue_increase)),
            ("total_investment", format_amount(aggregates.total_investment)),
            ("aggregate_roi", f"{aggregates.roi_percentage}%"),
        )
        for key, value in metrics:
            layout.add(BlockKind.METRIC, value, label=t(key))

        layout.add(BlockKind.SUBHEADING, t("top_opportunities"))
        for opportunity in analysis.opportunities[:TOP_OPPORTUNITY_COUNT]:
            layout.add(BlockKind.BULLET, f"{opportunity.title} ({t('priority')} {opportunity.priority}/10)")

    def _opportunity_details(self, layout: PageLayout, analysis: Analysis, locale: Locale):
        t = locale.label
        layout.begin_section(Section.OPPORTUNITIES, fresh_page=True)
        layout.add(BlockKind.HEADING, t("detailed_analysis"))

        for number, opportunity in enumerate(analysis.opportunities, start=1):
            if number > 1:
                layout.page_break(BreakReason.OPPORTUNITY)
            self._opportunity(layout, number, opportunity, locale)

    def _opportunity(self, layout: PageLayout, number: int, opportunity: Opportunity, locale: Locale):
        t = locale.label
        fallback = locale.fallback
        layout.add(BlockKind.SUBHEADING, t("opportunity_heading", number=number, title=opportunity.title))
        layout.add(BlockKind.FIELD, self._level_text(opportunity.impact, locale), label=t("impact"))
        layout.add(BlockKind.FIELD, self._level_text(opportunity.effort, locale), label=t("effort"))
        layout.add(BlockKind.FIELD, f"{opportunity.priority}/10", label=t("priority"))
        layout.add(BlockKind.PARAGRAPH, opportunity.description)

        case = opportunity.business_case
        layout.add(BlockKind.SUBHEADING, t("business_case"))
        layout.add(BlockKind.FIELD, case.problem_statement, label=t("problem_statement"))
        layout.add(BlockKind.FIELD, case.current_state, label=t("current_state"))
        layout.add(BlockKind.FIELD, case.ai_solution, label=t("ai_solution"))
        self._list(layout, t("success_metrics"), case.success_metrics, fallback("no_items"))

        implementation = opportunity.implementation
        resources = implementation.resource_needs
        risks = implementation.risk_assessment
        layout.add(BlockKind.SUBHEADING, t("implementation"))
        self._list(layout, t("technical_requirements"), implementation.technical_requirements, fallback("no_items"))
        layout.add(BlockKind.FIELD, implementation.timeline, label=t("timeline"))
        layout.add(BlockKind.FIELD, resources.team_size, label=t("team_size"))
        layout.add(BlockKind.FIELD, resources.estimated_budget, label=t("estimated_budget"))
        layout.add(BlockKind.FIELD, ", ".join(resources.skills) or fallback("no_items"), label=t("skills"))
        layout.add(BlockKind.LABEL, t("risk_assessment"))
        layout.add(BlockKind.FIELD, risks.technical, label=t("technical_risk"))
        layout.add(BlockKind.FIELD, risks.business, label=t("business_risk"))
        layout.add(BlockKind.FIELD, risks.change, label=t("change_risk"))

        financials = opportunity.financial_projections
        layout.add(BlockKind.SUBHEADING, t("financial_projections"))
        layout.add(BlockKind.FIELD, financials.cost_savings, label=t("cost_savings"))
        layout.add(BlockKind.FIELD, financials.revenue_increase, label=t("revenue_increase"))
        layout.add(BlockKind.FIELD, financials.investment_required, label=t("investment_required"))
        layout.add(BlockKind.FIELD, financials.roi_timeline, label=t("roi_timeline"))
        layout.add(BlockKind.FIELD, financials.scenarios.conservative, label=t("conservative_scenario"))
        layout.add(BlockKind.FIELD, financials.scenarios.optimistic, label=t("optimistic_scenario"))

        strategy = opportunity.strategic_recommendations
        layout.add(BlockKind.SUBHEADING, t("strategic_recommendations"))
        layout.add(BlockKind.FIELD, strategy.phases.phase1, label=t("phase1"))
        layout.add(BlockKind.FIELD, strategy.phases.phase2, label=t("phase2"))
        layout.add(BlockKind.FIELD, strategy.phases.phase3, label=t("phase3"))
        layout.add(BlockKind.FIELD, strategy.change_management.stakeholder_impact, label=t("stakeholder_impact"))
        layout.add(BlockKind.FIELD, strategy.change_management.training_needs, label=t("training_needs"))
        layout.add(
            BlockKind.FIELD,
            ", ".join(strategy.vendor_recommendations) or fallback("no_items"),
            label=t("vendor_recommendations"),
        )
        self._list(layout, t("success_criteria"), strategy.success_criteria, fallback("success_criteria"))

    def _strategic_recommendations(self, layout: PageLayout, analysis: Analysis, locale: Locale):
        t = locale.label
        fallback = locale.fallback
        opportunities = analysis.opportunities
        top = analysis.top_opportunity

        layout.begin_section(Section.STRATEGY, fresh_page=True)
        layout.add(BlockKind.HEADING, t("strategic_recommendations"))

        layout.add(BlockKind.SUBHEADING, t("prioritization_matrix"))
        layout.add(BlockKind.NOTE, t("matrix_legend"))
        layout.add(BlockKind.MATRIX_HEADER, cells=("", t("impact"), t("effort"), t("priority")))
        for opportunity in opportunities:
            layout.add(BlockKind.MATRIX_ROW, cells=(
                opportunity.title,
                level_bar(opportunity.impact),
                level_bar(opportunity.effort),
                f"{opportunity.priority}/10",
            ))

        layout.add(BlockKind.SUBHEADING, t("implementation_sequencing"))
        for label_key, wave in zip(("wave_quick_wins", "wave_high_priority", "wave_remaining"), sequence_waves(opportunities)):
            self._list(layout, t(label_key), [o.title for o in wave], fallback("no_items"))

        change = top.strategic_recommendations.change_management
        layout.add(BlockKind.SUBHEADING, t("change_management_narrative", title=top.title))
        layout.add(BlockKind.FIELD, change.stakeholder_impact, label=t("stakeholder_impact"))
        layout.add(BlockKind.FIELD, change.training_needs, label=t("training_needs"))
        self._list(layout, t("success_criteria"), top.strategic_recommendations.success_criteria, fallback("success_criteria"))

    def _financial_projections(self, layout: PageLayout, analysis: Analysis, aggregates: ReportAggregates, locale: Locale):
        t = locale.label
        layout.begin_section(Section.FINANCIALS)
        layout.add(BlockKind.HEADING, t("financial_projections"))
        layout.add(BlockKind.SUBHEADING, t("roi_breakdown"))

        for opportunity in analysis.opportunities:
            financials = opportunity.financial_projections
            layout.add(BlockKind.LABEL, opportunity.title)
            layout.add(BlockKind.FIELD, financials.cost_savings, label=t("cost_savings"))
            layout.add(BlockKind.FIELD, financials.revenue_increase, label=t("revenue_increase"))
            layout.add(BlockKind.FIELD, financials.investment_required, label=t("investment_required"))
            layout.add(BlockKind.FIELD, financials.roi_timeline, label=t("roi_timeline"))
            layout.add(BlockKind.FIELD, f"{opportunity_roi(opportunity)}%", label=t("estimated_roi"))

        layout.add(BlockKind.SUBHEADING, t("portfolio_totals"))
        layout.add(BlockKind.METRIC, format_amount(aggregates.total_cost_savings), label=t("total_cost_savings"))
        layout.add(BlockKind.METRIC, format_amount(aggregates.total_revenue_increase), label=t("total_revenue_increase"))
        layout.add(BlockKind.METRIC, format_amount(aggregates.total_investment), label=t("total_investment"))
        layout.add(BlockKind.METRIC, f"{aggregates.roi_percentage}%", label=t("aggregate_roi"))
        layout.add(BlockKind.NOTE, t("financial_disclaimer"))

    def _action_plan(self, layout: PageLayout, analysis: Analysis, locale: Locale):
        t = locale.label
        top = analysis.top_opportunity
        phases = top.strategic_recommendations.phases

        layout.begin_section(Section.ACTION_PLAN)
        layout.add(BlockKind.HEADING, t("action_plan"))
        layout.add(BlockKind.PARAGRAPH, t("action_plan_intro", title=top.title))
        for label_key, text in (("days_30", phases.phase1), ("days_60", phases.phase2), ("days_90", phases.phase3)):
            layout.add(BlockKind.SUBHEADING, t(label_key))
            layout.add(BlockKind.PARAGRAPH, text)

    def _footer(self, layout: PageLayout, analysis: Analysis, locale: Locale):
        t = locale.label
        layout.begin_section(Section.FOOTER)
        layout.add(BlockKind.RULE)
        layout.add(BlockKind.NOTE, f"{t('footer_generated')} · {analysis.analysis_date.strftime('%Y-%m-%d')}")
        layout.add(BlockKind.NOTE, t("footer_confidential"))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _level_text(level: Level, locale: Locale) -> str:
        return f"{locale.label('level_' + level.value)} {level_bar(level)}"

    @staticmethod
    def _list(layout: PageLayout, label: str, items: Iterable[str], empty_text: str):
        items = list(items)
        if not items:
            layout.add(BlockKind.FIELD, empty_text, label=label)
            return
        layout.add(BlockKind.LABEL, label)
        for item in items:
            layout.add(BlockKind.BULLET, item)


def sequence_waves(opportunities: Sequence[Opportunity]) -> Tuple[List[Opportunity], List[Opportunity], List[Opportunity]]:
    """Split opportunities into quick wins, other high-priority items, and the rest."""
    quick_wins, high_priority, remaining = [], [], []
    for opportunity in opportunities:
        if opportunity.is_quick_win:
            quick_wins.append(opportunity)
        elif opportunity.priority >= HIGH_PRIORITY_THRESHOLD:
            high_priority.append(opportunity)
        else:
            remaining.append(opportunity)
    return quick_wins, high_priority, remaining


def write_pdf(html: str) -> bytes:
    """Convert report HTML to PDF bytes with WeasyPrint."""
    from weasyprint import HTML

    buffer = io.BytesIO()
    HTML(string=html).write_pdf(buffer)
    return buffer.getvalue()
