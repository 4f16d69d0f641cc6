# src/logging/context.py — v2
"""Contextual logging support: attach analysis_id, document_id, stage to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set per analysis call; asyncio tasks inherit a copy.
_analysis_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "analysis_id", default=None
)
_document_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    analysis_id: str | None = None
    document_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        analysis_id=_analysis_id.get(),
        document_id=_document_id.get(),
        stage=_stage.get(),
    )


def set_analysis_context(analysis_id: str, document_id: str | None = None) -> None:
    """Set request-level context (called once per analysis call)."""
    _analysis_id.set(analysis_id)
    _document_id.set(document_id)


def set_stage_context(stage: str | None) -> None:
    """Set the pipeline stage currently running."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _analysis_id.set(None)
    _document_id.set(None)
    _stage.set(None)
