"""Utility helpers for setting parsing and attribute rewriting."""

from __future__ import annotations

import re
from typing import Any

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}
TAG_NAME_PATTERN = re.compile(r"<[A-Za-z][A-Za-z0-9]*")


def parse_bool(value: Any) -> bool:
    """Interpret host setting values such as ``"1"`` or ``"off"`` as booleans."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
    raise ValueError(f"not a boolean: {value!r}")


def replace_span(text: str, start: int, end: int, replacement: str) -> str:
    """Return ``text`` with ``text[start:end]`` swapped for ``replacement``."""
    return text[:start] + replacement + text[end:]


def insert_attribute(tag: str, name: str, value: str, quote: str = '"') -> str:
    """Insert ``name="value"`` directly after the tag name of ``tag``.

    ``value`` is placed verbatim; it is expected to be attribute-ready already
    (URLs lifted from an existing attribute, or generated data URIs).
    """
    if quote in value:
        raise ValueError(f"attribute value contains its quote character: {value!r}")
    match = TAG_NAME_PATTERN.match(tag)
    if not match:
        raise ValueError(f"not a start tag: {tag[:20]!r}")
    attribute = f" {name}={quote}{value}{quote}"
    return tag[: match.end()] + attribute + tag[match.end() :]


def escape_attribute(value: str, quote: str = '"') -> str:
    """Escape ``&`` and the enclosing quote character of an attribute value."""
    value = value.replace("&", "&amp;")
    if quote == '"':
        return value.replace('"', "&quot;")
    return value.replace("'", "&#39;")
