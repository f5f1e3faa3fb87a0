"""Discovery strategy interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vrt.models.config import VrtConfig
from vrt.models.discovery import StrategyFailure, StrategyResult


class DiscoveryStrategy(ABC):
    """One way of turning a reference target into a list of URLs.

    Strategies report failure by returning ``StrategyFailure`` rather than
    raising, so the collector can move on to the next one.
    """

    source: str = ""

    @abstractmethod
    async def discover(
        self, base_url: str, config: VrtConfig
    ) -> StrategyResult | StrategyFailure:
        ...
