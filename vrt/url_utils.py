"""Shared URL utilities: filtering, deduplication, and host-independent snapshot keys."""

from __future__ import annotations

import hashlib
import re
from fnmatch import fnmatchcase
from urllib.parse import urlparse, urlunparse


def path_and_query(url: str) -> str:
    """Return the path plus query string of a URL (``/a/b?x=1``)."""
    parsed = urlparse(url)
    path = parsed.path or "/"
    return f"{path}?{parsed.query}" if parsed.query else path


def hostname(url: str) -> str | None:
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def strip_fragment(url: str) -> str:
    return urlunparse(urlparse(url)._replace(fragment=""))


def strip_trailing_slash(url: str) -> str:
    """Drop a trailing slash from the path, except on the root path."""
    parsed = urlparse(url)
    if parsed.path != "/" and parsed.path.endswith("/"):
        return urlunparse(parsed._replace(path=parsed.path.rstrip("/") or "/"))
    return url


def matches_any(path: str, patterns: list[str]) -> bool:
    # fnmatch's "*" also matches "/", so "*" and "**" both act as globstars.
    return any(fnmatchcase(path, p) for p in patterns)


def filter_urls(
    urls: list[str], base_url: str, include: list[str], exclude: list[str]
) -> list[str]:
    """Keep same-host URLs whose path+query passes the include/exclude globs.

    Exclude always wins; an empty include list matches everything.
    """
    base_host = hostname(base_url)
    kept = []
    for url in urls:
        if hostname(url) != base_host:
            continue
        path = path_and_query(url)
        if exclude and matches_any(path, exclude):
            continue
        if include and not matches_any(path, include):
            continue
        kept.append(url)
    return kept


def dedupe(urls: list[str]) -> list[str]:
    """Remove exact duplicates, preserving first-seen order."""
    return list(dict.fromkeys(urls))


def truncate(urls: list[str], limit: int) -> list[str]:
    return urls[:limit]


def snapshot_key(url: str) -> str:
    """Stable, host-independent file stem for a URL's screenshots.

    Reference and test captures of the same page share a key because only
    the path and query participate.
    """
    path = path_and_query(url)
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", path).strip("-").lower()[:60] or "index"
    digest = hashlib.md5(path.encode()).hexdigest()[:8]
    return f"{slug}-{digest}"
