"""Helpers for building site, page, and occurrence keys."""

from __future__ import annotations

import re
from typing import Iterable, Sequence, Union
from urllib.parse import urldefrag, urlsplit

UNKNOWN_SITE = "Unknown site"
KEY_SEPARATOR = "|"
TARGET_SEPARATOR = ">"

_COMBINATOR_SPACING = re.compile(r"\s*>\s*")
_SLUG_UNSAFE = re.compile(r"[^\w-]")

TargetPath = Union[str, Sequence]


def normalize_page(url: str) -> str:
    """Strip the fragment and a trailing slash so equivalent pages compare equal."""

    without_fragment, _ = urldefrag(url or "")
    return without_fragment.rstrip("/")


def _flatten_segments(target: Iterable) -> list[str]:
    segments: list[str] = []
    for segment in target:
        # iframe and shadow DOM paths arrive as nested lists
        if isinstance(segment, (list, tuple)):
            segments.extend(_flatten_segments(segment))
        elif segment is not None:
            segments.append(str(segment))
    return segments


def normalize_target(target: TargetPath) -> str:
    """Return the canonical selector path for a list of segments or a joined string."""

    if target is None:
        return ""
    if isinstance(target, str):
        joined = target
    else:
        joined = TARGET_SEPARATOR.join(_flatten_segments(target))
    return _COMBINATOR_SPACING.sub(TARGET_SEPARATOR, joined).strip()


def target_segments(target: TargetPath) -> tuple[str, ...]:
    """Return the selector path as a tuple of segments."""

    if target is None:
        return ()
    if isinstance(target, str):
        return tuple(part.strip() for part in target.split(TARGET_SEPARATOR) if part.strip())
    return tuple(_flatten_segments(target))


def occurrence_key(page: str, rule_id: str, target: TargetPath) -> str:
    """Identity of one occurrence; deliberately ignores the HTML snippet."""

    return KEY_SEPARATOR.join((normalize_page(page), rule_id, normalize_target(target)))


def build_site_slug(site_url: str) -> str:
    """Return a filesystem-safe slug for a site URL."""

    slug = re.sub(r"^https?://", "", site_url.strip())
    slug = slug.rstrip("/")
    return _SLUG_UNSAFE.sub("_", slug)


def site_url_from_pages(urls: Iterable[str]) -> str:
    """Derive ``scheme://host`` from the first audited URL."""

    for url in urls:
        parts = urlsplit(url or "")
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{parts.netloc}"
        break
    return UNKNOWN_SITE


def history_file_pattern(site_slug: str) -> re.Pattern:
    """Fuzzy filename matcher for one site's snapshot files.

    A leading ``www-``/``www_`` is dropped and dashes/underscores are treated
    as interchangeable, so ``www.example-site.com`` and ``example_site_com``
    match the same files.
    """

    core_slug = re.sub(r"^www[-_.]", "", site_slug, flags=re.IGNORECASE)
    fuzzy = "".join("[-_]" if char in "-_" else re.escape(char) for char in core_slug)
    return re.compile(rf"{fuzzy}.*\.json$", re.IGNORECASE)
