"""Structured error payload surfaced to users instead of a raw traceback."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StructuredError(BaseModel):
    """User-facing description of a fatal error."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    technical_detail: str = ""
    suggested_actions: list[str] = []
