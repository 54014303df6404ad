"""Inline SVG placeholders used while an image waits to become visible."""

from __future__ import annotations

from typing import Optional, Tuple

from .config import FilterConfig
from .models import FileMetadata

SVG_DATA_PREFIX = "data:image/svg+xml;utf8,"
# Characters that would end or corrupt a utf8 data URI.
_DATA_URI_ESCAPES = (("%", "%25"), ("#", "%23"), ("<", "%3C"), (">", "%3E"))


def _encode_svg(svg: str) -> str:
    for char, escaped in _DATA_URI_ESCAPES:
        svg = svg.replace(char, escaped)
    return svg


def empty_image(width: Optional[int] = None, height: Optional[int] = None) -> str:
    """Return a transparent SVG data URI with the given intrinsic size.

    Width and height are declared only when both are known; a guessed size
    would cause the very reflow the placeholder is there to prevent.
    """
    attributes = 'xmlns="http://www.w3.org/2000/svg"'
    if width and height:
        attributes += f' width="{width}" height="{height}" viewBox="0 0 {width} {height}"'
    return SVG_DATA_PREFIX + _encode_svg(f"<svg {attributes}></svg>")


def placeholder_size(
    metadata: FileMetadata, config: FilterConfig
) -> Tuple[Optional[int], Optional[int]]:
    """Dimensions the placeholder should declare for ``metadata``.

    Natural dimensions pass through unless ``scale_placeholder`` is set and the
    image is wider than ``maxwidth``, in which case both sides shrink together.
    """
    if not metadata.has_dimensions:
        return None, None
    width, height = metadata.width, metadata.height
    if config.scale_placeholder and config.maxwidth and width > config.maxwidth:
        height = max(1, round(height * config.maxwidth / width))
        width = config.maxwidth
    return width, height
