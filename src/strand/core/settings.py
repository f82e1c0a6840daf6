"""Environment-driven settings for services that host strand pipelines.

The pipeline engine itself never reads the environment.  A hosting service
loads ``StrandSettings`` once at startup and converts it into a
:class:`~strand.pipeline.engine.PipelineConfig` via
``PipelineConfig.from_settings(settings, emitter)``.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not per request
    - **Environment-driven:** Reads ``STRAND_*`` env vars and ``.env`` files
    - **Sensible defaults:** Works out of the box for development

Examples:
    >>> from strand.core.settings import StrandSettings
    >>> settings = StrandSettings(sample_rate=0.25)
    >>> settings.sample_rate
    0.25

Tags:
    settings, configuration, pydantic, environment, strand

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StrandSettings(BaseSettings):
    """Settings for a service that runs strand pipelines.

    Order of precedence (highest → lowest):
        1. Environment variables (``STRAND_SAMPLE_RATE``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    model_config = SettingsConfigDict(
        env_prefix="STRAND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Metrics ──────────────────────────────────────────────────
    metrics_enabled: bool = Field(default=True, description="Emit unit metrics at all")
    sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Sampling rate attached to every emitted metric",
    )
    metrics_queue_size: int = Field(
        default=0,
        ge=0,
        description="Queue emissions on a background thread when > 0",
    )

    # ── Responses ────────────────────────────────────────────────
    failure_status: int = Field(
        default=500,
        ge=400,
        le=599,
        description="Status written when a failing unit sets none",
    )

    # ── Observability ────────────────────────────────────────────
    service_name: str = "strand"
    log_level: str = "INFO"
    json_logs: bool | None = Field(
        default=None,
        description="Force JSON (True) or console (False) logs; None auto-detects",
    )
