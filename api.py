#!/usr/bin/env python3
"""
AI Opportunity Scanner API Server

FastAPI application that sends a business description to a language model,
turns the response into an opportunity analysis and serves the PDF report.

Usage:
    # Start the server
    uvicorn api:app --host 0.0.0.0 --port 8000 --reload

    # Or run directly
    python api.py

Endpoints:
    POST /api/analyze                 - Analyze a business description
    GET  /api/download/{analysis_id}  - Download the PDF report (once)
    GET  /health                      - Health check endpoint
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pymongo import MongoClient

from opportunity_scanner import __version__
from opportunity_scanner.config import Settings
from opportunity_scanner.errors import ParseError, RenderError, ValidationError
from opportunity_scanner.localization import LocalizationProvider
from opportunity_scanner.models import ModelTier, Provider
from opportunity_scanner.pipeline import OpportunityPipeline, PipelineRequest, make_excerpt
from opportunity_scanner.prompts import build_prompt
from opportunity_scanner.providers import ProviderClient, ProviderConfig, ProviderError
from opportunity_scanner.renderer import MEDIA_TYPE, report_filename
from opportunity_scanner.store import FileReportStore, InMemoryReportStore, MongoReportStore, ReportStore

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    """Request body for an opportunity scan."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    company_description: str = Field(min_length=20, max_length=20000)
    provider: Provider = Provider.OPENAI
    model: ModelTier = ModelTier.STANDARD
    api_key: Optional[str] = None
    language: Optional[str] = None


class AnalyzeResponse(BaseModel):
    """Response body for a completed scan."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    analysis_id: str
    analysis: Dict[str, Any]
    summary: Dict[str, Any]
    page_count: int = Field(
        description="Pages in the report layout, one per page section of the rendered HTML"
    )
    download_url: str


def build_store(settings: Settings) -> ReportStore:
    """Create the report store selected by configuration."""
    if settings.store_backend == "file":
        return FileReportStore(settings.output_dir / "reports")
    if settings.store_backend == "mongo":
        client = MongoClient(settings.mongodb_uri)
        collection = client[settings.database_name][MongoReportStore.COLLECTION_NAME]
        ttl = int(settings.report_ttl_seconds) if settings.report_ttl_seconds else None
        return MongoReportStore(collection, ttl_seconds=ttl)
    return InMemoryReportStore(ttl_seconds=settings.report_ttl_seconds)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ReportStore] = None,
    provider_client: Optional[ProviderClient] = None,
    pipeline: Optional[OpportunityPipeline] = None,
) -> FastAPI:
    """Build the FastAPI application; collaborators can be injected for testing."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting AI Opportunity Scanner API (store: %s)", settings.store_backend)
        app.state.store = store or build_store(settings)
        app.state.provider_client = provider_client or ProviderClient(
            ProviderConfig(timeout=settings.provider_timeout)
        )
        app.state.pipeline = pipeline or OpportunityPipeline(
            app.state.store, localization=LocalizationProvider(settings.default_language)
        )

        yield

        logger.info("Shutting down AI Opportunity Scanner API")
        app.state.provider_client.close()

    app = FastAPI(
        title="AI Opportunity Scanner API",
        description="Identify AI implementation opportunities and generate PDF reports",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "store": settings.store_backend,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @app.post("/api/analyze", response_model=AnalyzeResponse, response_model_by_alias=True)
    async def analyze(body: AnalyzeRequest, request: Request):
        """
        Analyze a business description and render the PDF report.

        The report can be downloaded once from the returned download URL.
        """
        state = request.app.state
        api_key = body.api_key or settings.api_key_for(body.provider)
        if not api_key:
            raise HTTPException(status_code=400, detail=f"An API key for {body.provider.value} is required")

        language = state.pipeline.localization.resolve_code(body.language)
        prompt = build_prompt(body.company_description, body.model.schema_mode, language)

        # Provider call is blocking; run it in the thread pool
        loop = asyncio.get_running_loop()
        try:
            raw_text = await loop.run_in_executor(
                None,
                state.provider_client.complete,
                body.provider,
                body.model,
                api_key,
                prompt
            )
        except ProviderError as e:
            logger.warning("Provider call failed: %s", e)
            raise HTTPException(status_code=502, detail=f"AI provider error: {e}")

        try:
            result = await state.pipeline.run(PipelineRequest(
                raw_response_text=raw_text,
                schema_mode=body.model.schema_mode,
                language=language,
                company_description_excerpt=make_excerpt(body.company_description),
                provider=body.provider,
                model=body.model,
            ))
        except (ParseError, ValidationError) as e:
            logger.warning("Upstream response could not be processed: %s", e)
            raise HTTPException(status_code=422, detail=f"Upstream response could not be processed: {e}")
        except RenderError as e:
            logger.error("Report rendering failed: %s", e)
            raise HTTPException(status_code=500, detail="Report generation failed")

        payload = result.to_dict()
        return AnalyzeResponse(
            success=True,
            analysis_id=result.analysis.id,
            analysis=payload["analysis"],
            summary=payload["summary"],
            page_count=result.page_count,
            download_url=f"/api/download/{result.analysis.id}",
        )

    @app.get("/api/download/{analysis_id}")
    async def download_report(analysis_id: str, request: Request):
        """Download a generated report. Each report can be downloaded once."""
        data = request.app.state.store.take(analysis_id)
        if data is None:
            raise HTTPException(status_code=404, detail="Report not found or already downloaded")

        return Response(
            content=data,
            media_type=MEDIA_TYPE,
            headers={
                "Content-Disposition": f"attachment; filename={report_filename(analysis_id)}"
            }
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = app.state.settings

    print(f"""
    ╔══════════════════════════════════════════════════════════════╗
    ║              AI Opportunity Scanner API v{__version__}               ║
    ╚══════════════════════════════════════════════════════════════╝

    Starting server at http://{settings.api_host}:{settings.api_port}

    Endpoints:
      POST /api/analyze                - Analyze a business description
      GET  /api/download/{{id}}          - Download the PDF report (once)
      GET  /health                     - Health check

    Documentation: http://{settings.api_host}:{settings.api_port}/docs
    """)

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
