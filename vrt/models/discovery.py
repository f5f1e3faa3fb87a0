"""URL discovery data structures."""

from __future__ import annotations

from pydantic import BaseModel, Field


class StrategyResult(BaseModel):
    """URLs produced by one discovery strategy."""
    source: str
    urls: list[str] = Field(default_factory=list)


class StrategyFailure(BaseModel):
    """A discovery strategy that could not produce URLs."""
    source: str
    reason: str


class DiscoveryResult(BaseModel):
    urls: list[str] = Field(default_factory=list)
    source: str  # sitemap, crawl
    total_before_filter: int = 0
    count_after_filter_before_limit: int = 0
