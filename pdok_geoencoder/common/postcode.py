"""Dutch postcode and house number normalisation."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalise_zip(raw: str | None) -> str | None:
    """Strip every whitespace character; the Locatieserver expects ``1234AB``."""
    if raw is None:
        return None
    cleaned = _WHITESPACE_RE.sub("", raw)
    return cleaned or None


def normalise_house_number(raw: str | None) -> str | None:
    if raw is None:
        return None
    cleaned = raw.strip()
    return cleaned or None
