"""
Opportunity pipeline: raw model output to a stored PDF report.

normalize -> adapt -> Analysis -> aggregate -> lay out -> finalize -> store.
Every step runs sequentially for one request; the run is complete only once
the PDF has been finalized and stored. Errors propagate to the caller
unchanged and nothing is retried here.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .adapter import SchemaAdapter
from .aggregator import ReportAggregator
from .localization import LocalizationProvider
from .models import Analysis, ModelTier, Provider, ReportAggregates, SchemaMode
from .normalizer import ResponseNormalizer
from .renderer import DocumentRenderer, report_filename
from .store import ReportStore, new_analysis_id

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 500


def make_excerpt(text: str, limit: int = EXCERPT_LENGTH) -> str:
    """Collapse whitespace and cut the description at a word boundary."""
    collapsed = " ".join((text or "").split())
    if len(collapsed) <= limit:
        return collapsed
    cut = collapsed[:limit].rsplit(" ", 1)[0]
    return f"{cut}..."


@dataclass
class PipelineRequest:
    """Input for one pipeline run."""
    raw_response_text: str
    schema_mode: SchemaMode = SchemaMode.STANDARD
    language: Optional[str] = None
    company_description_excerpt: str = ""
    provider: Provider = Provider.OPENAI
    model: ModelTier = ModelTier.STANDARD


@dataclass
class PipelineResult:
    """
    Outcome of one run.

    ``page_count`` counts the laid-out pages, each rendered as one page
    section of the HTML handed to the PDF writer.
    """
    analysis: Analysis
    aggregates: ReportAggregates
    page_count: int
    filename: str
    timings: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis": self.analysis.model_dump(mode="json", by_alias=True),
            "summary": self.aggregates.model_dump(mode="json", by_alias=True),
            "pageCount": self.page_count,
            "filename": self.filename,
        }


class OpportunityPipeline:
    """Runs one analysis end to end and stores the rendered report."""

    def __init__(
        self,
        store: ReportStore,
        renderer: Optional[DocumentRenderer] = None,
        localization: Optional[LocalizationProvider] = None,
        id_factory: Callable[[], str] = new_analysis_id,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.renderer = renderer or DocumentRenderer()
        self.localization = localization or LocalizationProvider()
        self.normalizer = ResponseNormalizer()
        self.aggregator = ReportAggregator()
        self._id_factory = id_factory
        self._clock = clock

    async def run(self, request: PipelineRequest) -> PipelineResult:
        """
        Process a raw model response into a stored report.

        Args:
            request: Raw response text plus run metadata

        Returns:
            PipelineResult with the canonical Analysis and its aggregates

        Raises:
            ParseError, ValidationError: the upstream response could not be processed
            RenderError: the report could not be produced
        """
        timings = {}
        start = time.time()
        locale = self.localization.get(request.language)

        records = self.normalizer.normalize(request.raw_response_text)
        timings["normalize"] = time.time() - start

        step = time.time()
        opportunities = SchemaAdapter(locale).adapt(records, request.schema_mode)
        timings["adapt"] = time.time() - step

        analysis = Analysis(
            id=self._id_factory(),
            provider=request.provider,
            model=request.model,
            language=locale.code,
            analysis_date=self._clock(),
            company_excerpt=make_excerpt(request.company_description_excerpt),
            opportunities=opportunities,
        )
        aggregates = self.aggregator.aggregate(analysis)
        logger.info(
            "Analysis %s: %d opportunities (%d high priority, %d quick wins)",
            analysis.id, aggregates.total_opportunities, aggregates.high_priority, aggregates.quick_wins
        )

        step = time.time()
        document = self.renderer.render(analysis, aggregates, locale)
        pdf_bytes = await self.renderer.finalize(document)
        timings["render"] = time.time() - step

        self.store.put(analysis.id, pdf_bytes)
        timings["total"] = time.time() - start
        logger.info("Analysis %s completed in %.2fs", analysis.id, timings["total"])

        return PipelineResult(
            analysis=analysis,
            aggregates=aggregates,
            page_count=document.page_count,
            filename=report_filename(analysis.id),
            timings={name: round(seconds, 3) for name, seconds in timings.items()},
        )
