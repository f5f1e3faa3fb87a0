"""Baseline policy gate: refuses runs whose baseline provenance would be ambiguous."""

from __future__ import annotations

import logging
from enum import Enum

from vrt.errors import BaselineAmbiguityError

logger = logging.getLogger(__name__)


class BaselineDecision(str, Enum):
    REUSE = "reuse"  # persisted URLs and baselines; reference never contacted
    REGENERATE = "regenerate"  # rediscover URLs and recapture baselines


def decide_baseline(
    has_explicit_reference: bool, cache_valid: bool, force_update: bool
) -> BaselineDecision:
    """Pick reuse or regeneration, or raise BaselineAmbiguityError.

    Capturing a first baseline from the host under test would make the
    comparison vacuously pass, so with an implicit reference and no usable
    cache an explicit force is required.
    """
    if force_update:
        logger.debug("Baseline update forced")
        return BaselineDecision.REGENERATE
    if cache_valid:
        return BaselineDecision.REUSE
    if has_explicit_reference:
        return BaselineDecision.REGENERATE
    raise BaselineAmbiguityError()
