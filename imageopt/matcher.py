"""Tag-level matcher for ``<img>`` elements served through pluginfile.php."""

from __future__ import annotations

import re
from typing import Iterator, List

from .models import ImageTagMatch

FILE_SERVING_MARKER = "pluginfile.php"

# A start tag ``<img ...>`` or ``<img .../>`` carrying a src attribute (in any
# position) whose value addresses a stored file:
# pluginfile.php/<contextid>/<component>/<filearea>/<at least one segment>.
# The tag name and attribute names are case-insensitive, the marker is not.
# Quoted attribute values may contain ">" (e.g. alt="a > b").
_ATTRIBUTE_RUN = r"(?:[^<>\"']|\"[^\"]*\"|'[^']*')"

IMG_SRC_PATTERN = re.compile(
    r"<(?i:img)\s"
    + _ATTRIBUTE_RUN
    + r"*?"
    r"(?<![-\w:.])(?i:src)\s*=\s*"
    r"(?P<quote>[\"'])"
    r"(?P<src>"
    r"(?:(?:(?!(?P=quote))[^<>\s])*?/)?"
    + re.escape(FILE_SERVING_MARKER)
    + r"/[0-9]+/[A-Za-z0-9_]+/[A-Za-z0-9_]+/"
    r"(?:(?!(?P=quote))[^<>\s])+"
    r")"
    r"(?P=quote)"
    + _ATTRIBUTE_RUN
    + r"*>"
)


def iter_image_tags(html: str) -> Iterator[ImageTagMatch]:
    """Yield non-overlapping file-serving ``<img>`` tags in document order.

    Each call starts a fresh scan, so the result can be re-requested freely.
    Malformed or unterminated tags are skipped rather than reported.
    """
    for match in IMG_SRC_PATTERN.finditer(html):
        start = match.start()
        yield ImageTagMatch(
            tag=match.group(0),
            quote=match.group("quote"),
            src=match.group("src"),
            start=start,
            end=match.end(),
            src_start=match.start("src") - start,
            src_end=match.end("src") - start,
        )


def find_image_tags(html: str) -> List[ImageTagMatch]:
    """Return every matching tag at once."""
    return list(iter_image_tags(html))
