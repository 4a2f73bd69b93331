"""Internal transport models."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field


class ProxyRequest(BaseModel):
    method: str
    target_url: str | None = None
    headers: list[tuple[str, str]] = Field(default_factory=list)


class ParsedTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    href: str
    scheme: str
    host: str


def new_request_id() -> str:
    """Short random id used to correlate the log lines of one request."""

    return uuid.uuid4().hex[:10]
