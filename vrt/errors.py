"""Exception hierarchy for the visual regression runner.

Every fatal condition derives from ``VrtError``; the CLI maps all of them
to exit status 2. Recoverable conditions (sitemap failures, unreadable
cache manifests, unreadable results) are returned as values instead.
"""

from __future__ import annotations


class VrtError(Exception):
    """Base class for fatal runner errors."""


class ConfigError(VrtError):
    """The effective configuration is missing a value or is invalid."""


class ConfigFileNotFoundError(ConfigError):
    """The config file named on the command line does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Config file not found: {path}")


class BaselineAmbiguityError(VrtError):
    """Refusal to capture a baseline from the host under test."""

    remediations: tuple[str, ...] = (
        "Provide --reference <url> to create the baseline from a reference system",
        "Use --update-baseline to create the baseline from the test URL",
        "Add referenceUrl to your config file",
    )

    def __init__(self, message: str | None = None):
        super().__init__(
            message or "No baseline snapshots found and no reference URL provided."
        )


class NoUrlsError(VrtError):
    """URL discovery and filtering left nothing to test."""


class ExecutionError(VrtError):
    """The capture engine process could not be launched."""
