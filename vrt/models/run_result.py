"""Run result data structures produced by the result aggregator."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

EXIT_OK = 0
EXIT_DIFFERENCES = 1
EXIT_ERROR = 2


class UrlOutcome(BaseModel):
    url: str
    project: str
    passed: bool
    status: str
    message: str = ""


class RunResult(BaseModel):
    passed: int = 0
    failed: int = 0
    total: int = 0
    outcomes: list[UrlOutcome] = Field(default_factory=list)
    engine_exit_code: int = 0
    results_error: Optional[str] = None  # set when results.json was missing or malformed
    report_path: Optional[str] = None

    @property
    def exit_code(self) -> int:
        if self.results_error:
            return EXIT_ERROR
        if self.failed > 0:
            return EXIT_DIFFERENCES
        if self.engine_exit_code != 0:
            # Engine failed without reporting differences.
            return EXIT_ERROR
        return EXIT_OK
