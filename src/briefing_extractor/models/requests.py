"""Request/option models (briefing extraction batches)."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.validators import is_valid_http_url, is_workfront_url

CONCURRENCY_MIN = 1
CONCURRENCY_MAX = 5


def clamp_concurrency(value: int | None, default: int = 2, upper: int = CONCURRENCY_MAX) -> int:
    try:
        v = int(value) if value is not None else default
    except (TypeError, ValueError):
        v = default
    if v <= 0:
        v = default
    return max(CONCURRENCY_MIN, min(upper, v))


class ExtractionOptions(BaseModel):
    """Recognised caller options for a batch run."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    headless: bool = True
    continue_on_error: bool = Field(default=True, alias="continueOnError")
    keep_files: bool = Field(default=False, alias="keepFiles")
    concurrency: int = 2
    single_briefing: bool = Field(default=True, alias="singleBriefing")

    @field_validator("concurrency", mode="before")
    @classmethod
    def clamp(cls, v: object) -> int:
        return clamp_concurrency(v)  # type: ignore[arg-type]


class ExtractionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_urls: List[str] = Field(..., alias="projectUrls", min_length=1)
    options: ExtractionOptions = Field(default_factory=ExtractionOptions)
    operation_id: str | None = Field(default=None, alias="operationId")

    @field_validator("project_urls")
    @classmethod
    def validate_urls(cls, v: list[str]) -> list[str]:
        out: list[str] = []
        for idx, raw in enumerate(v, start=1):
            url = (raw or "").strip()
            if not url or not is_valid_http_url(url):
                raise ValueError(f"URL {idx} is invalid or empty")
            if not is_workfront_url(url):
                raise ValueError(f"URL {idx} does not look like a Workfront project link")
            out.append(url)
        return out
