#!/usr/bin/env python3
"""
Render a saved model response into a PDF report.

Usage:
    python -m opportunity_scanner.cli --input response.txt --output report.pdf
    python -m opportunity_scanner.cli --input response.txt --output report.pdf --mode nano --language fr
    python -m opportunity_scanner.cli --input response.txt --output report.pdf --json analysis.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import Settings
from .errors import ParseError, RenderError, ValidationError
from .localization import LocalizationProvider
from .models import ModelTier, Provider, SchemaMode
from .pipeline import OpportunityPipeline, PipelineRequest
from .store import InMemoryReportStore


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="AI Opportunity Scanner - render a raw model response into a report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m opportunity_scanner.cli --input response.txt --output report.pdf
    python -m opportunity_scanner.cli --input response.txt --output rapport.pdf --language fr
        """
    )
    parser.add_argument("--input", type=Path, required=True, help="File holding the raw model response")
    parser.add_argument("--output", type=Path, required=True, help="Where to write the PDF report")
    parser.add_argument("--mode", choices=[m.value for m in SchemaMode], default=SchemaMode.STANDARD.value,
                        help="Response schema (default: standard)")
    parser.add_argument("--language", default=None,
                        help="Report language (default: SCANNER_DEFAULT_LANGUAGE, else en)")
    parser.add_argument("--provider", choices=[p.value for p in Provider], default=Provider.OPENAI.value)
    parser.add_argument("--model", choices=[m.value for m in ModelTier], default=None,
                        help="Model tier recorded in the report (default: derived from --mode)")
    parser.add_argument("--description", type=Path, help="File holding the company description")
    parser.add_argument("--json", type=Path, dest="json_output", help="Also write the analysis as JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if not args.input.exists():
        print(f"Error: input file not found: {args.input}")
        return 1

    schema_mode = SchemaMode(args.mode)
    model = ModelTier(args.model) if args.model else (
        ModelTier.NANO if schema_mode is SchemaMode.NANO else ModelTier.STANDARD
    )
    description = args.description.read_text(encoding="utf-8") if args.description else ""

    store = InMemoryReportStore()
    settings = Settings.from_env()
    pipeline = OpportunityPipeline(store, localization=LocalizationProvider(settings.default_language))
    request = PipelineRequest(
        raw_response_text=args.input.read_text(encoding="utf-8"),
        schema_mode=schema_mode,
        language=args.language,
        company_description_excerpt=description,
        provider=Provider(args.provider),
        model=model,
    )

    try:
        result = asyncio.run(pipeline.run(request))
    except (ParseError, ValidationError) as e:
        print(f"Error: model response could not be processed: {e}")
        return 2
    except RenderError as e:
        print(f"Error: report rendering failed: {e}")
        return 3

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(store.take(result.analysis.id))
    print(f"Report written to {args.output} ({result.page_count} pages)")

    if args.json_output:
        with open(args.json_output, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
        print(f"Analysis written to {args.json_output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
