"""
Runtime configuration from environment variables.

Values may also come from a ``.env`` file in the working directory.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .models import Provider


STORE_BACKENDS = ("memory", "file", "mongo")


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass
class Settings:
    """Configuration for the API server, CLI and pipeline."""
    store_backend: str = "memory"
    output_dir: Path = Path("output")
    report_ttl_seconds: Optional[float] = 3600.0
    mongodb_uri: str = "mongodb://localhost:27017"
    database_name: str = "OpportunityScanner"
    default_language: str = "en"
    openai_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    provider_timeout: float = 120.0
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    def __post_init__(self):
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(
                f"SCANNER_STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got '{self.store_backend}'"
            )

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Settings":
        """Build settings from the environment (and ``.env`` when present)."""
        if load_dotenv_file:
            load_dotenv()

        return cls(
            store_backend=os.getenv("SCANNER_STORE_BACKEND", "memory").strip().lower(),
            output_dir=Path(os.getenv("SCANNER_OUTPUT_DIR", "output")),
            report_ttl_seconds=_optional_float(os.getenv("SCANNER_REPORT_TTL_SECONDS", "3600")),
            mongodb_uri=os.getenv("SCANNER_MONGODB_URI", "mongodb://localhost:27017"),
            database_name=os.getenv("SCANNER_DATABASE_NAME", "OpportunityScanner"),
            default_language=os.getenv("SCANNER_DEFAULT_LANGUAGE", "en"),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            google_api_key=os.getenv("GOOGLE_API_KEY") or None,
            provider_timeout=float(os.getenv("SCANNER_PROVIDER_TIMEOUT", "120")),
            api_host=os.getenv("SCANNER_API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("SCANNER_API_PORT", "8000")),
        )

    def api_key_for(self, provider: Provider) -> Optional[str]:
        """Server-side credential for a provider, if configured."""
        if provider is Provider.OPENAI:
            return self.openai_api_key
        return self.google_api_key
