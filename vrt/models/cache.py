"""Cache manifest data structures."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .config import _CamelModel


class CacheManifest(_CamelModel):
    config_fingerprint: str
    test_spec_fingerprint: str
    timestamp: str  # ISO timestamp


class CacheStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    ERROR = "error"  # manifest unreadable; treated as invalid


class CacheCheck(BaseModel):
    status: CacheStatus
    reason: str = ""
    manifest: Optional[CacheManifest] = None

    @property
    def is_valid(self) -> bool:
        return self.status == CacheStatus.VALID
