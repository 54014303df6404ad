"""Conversion between file-serving URLs and their optimiser equivalents."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import List, NamedTuple, Optional

from .config import DEFAULT_VIRTUAL_NAMESPACE
from .matcher import FILE_SERVING_MARKER
from .models import ImageReference

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
# Only canonical integers survive a decode/encode round trip unchanged.
INTEGER_SEGMENT_PATTERN = re.compile(r"^(?:0|[1-9][0-9]*)$")
URL_PATTERN = re.compile(
    r"^(?P<base>.*?)"
    + re.escape(FILE_SERVING_MARKER)
    + r"/(?P<rest>[^?#]*)"
    r"(?P<query>[?#].*)?$",
    re.DOTALL,
)


class _SplitUrl(NamedTuple):
    base: str
    context_id: int
    component: str
    file_area: str
    segments: List[str]
    query: str


def _split_url(url: str) -> Optional[_SplitUrl]:
    match = URL_PATTERN.match(url)
    if not match:
        return None
    base = match.group("base")
    if base and not base.endswith("/"):
        return None
    parts = match.group("rest").split("/")
    if len(parts) < 4 or any(not part for part in parts):
        return None
    context, component, file_area, *segments = parts
    if not INTEGER_SEGMENT_PATTERN.match(context):
        return None
    if not IDENTIFIER_PATTERN.match(component) or not IDENTIFIER_PATTERN.match(file_area):
        return None
    return _SplitUrl(
        base=base,
        context_id=int(context),
        component=component,
        file_area=file_area,
        segments=segments,
        query=match.group("query") or "",
    )


def _join_file_path(segments: List[str]) -> str:
    if not segments:
        return "/"
    return "/" + "/".join(segments) + "/"


def decode_url(url: str) -> Optional[ImageReference]:
    """Split a pluginfile.php URL into its addressing fields.

    Returns ``None`` when the URL does not follow the file-serving shape.
    The item id is optional in the URL: a leading numeric segment is read as
    the item id only when further segments follow it, otherwise it is ``0``.
    """
    split = _split_url(url)
    if split is None:
        return None
    segments = split.segments
    item_id = 0
    if len(segments) >= 2 and INTEGER_SEGMENT_PATTERN.match(segments[0]):
        item_id = int(segments[0])
        segments = segments[1:]
    return ImageReference(
        base=split.base,
        context_id=split.context_id,
        component=split.component,
        file_area=split.file_area,
        file_name=segments[-1],
        item_id=item_id,
        file_path=_join_file_path(segments[:-1]),
        query=split.query,
    )


def encode_original_url(ref: ImageReference) -> str:
    """Build the canonical file-serving URL, item id and path always present."""
    return (
        f"{ref.base}{FILE_SERVING_MARKER}/{ref.context_id}/{ref.component}/"
        f"{ref.file_area}/{ref.item_id}{ref.file_path}{ref.file_name}{ref.query}"
    )


def encode_optimised_url(
    ref: ImageReference,
    virtual_namespace: str = DEFAULT_VIRTUAL_NAMESPACE,
) -> str:
    """Build the URL that routes ``ref`` through the optimiser component.

    The original component moves behind the item id so that the stored file
    stays addressable: ``<ns>/<filearea>/<itemid>/<component><filepath><filename>``.
    """
    return (
        f"{ref.base}{FILE_SERVING_MARKER}/{ref.context_id}/{virtual_namespace}/"
        f"{ref.file_area}/{ref.item_id}/{ref.component}{ref.file_path}"
        f"{ref.file_name}{ref.query}"
    )


def decode_optimised_url(
    url: str,
    virtual_namespace: str = DEFAULT_VIRTUAL_NAMESPACE,
) -> Optional[ImageReference]:
    """Recover the original file reference from an optimiser URL."""
    split = _split_url(url)
    if split is None or split.component != virtual_namespace:
        return None
    segments = split.segments
    if len(segments) < 3 or not INTEGER_SEGMENT_PATTERN.match(segments[0]):
        return None
    item, component, *rest = segments
    if not IDENTIFIER_PATTERN.match(component):
        return None
    return ImageReference(
        base=split.base,
        context_id=split.context_id,
        component=component,
        file_area=split.file_area,
        file_name=rest[-1],
        item_id=int(item),
        file_path=_join_file_path(rest[:-1]),
        query=split.query,
    )


def with_base(ref: ImageReference, base: str) -> ImageReference:
    """Return ``ref`` rooted at another site prefix (``base`` ends in ``/``)."""
    if base and not base.endswith("/"):
        base = base + "/"
    return replace(ref, base=base)
