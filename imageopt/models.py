"""Data models shared by the matcher, path codec, and rewriter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ImageTagMatch:
    """A single ``<img>`` tag whose src points at the file-serving path."""

    tag: str
    quote: str
    src: str
    start: int
    end: int
    src_start: int
    src_end: int


@dataclass(frozen=True)
class ImageReference:
    """File-serving URL decomposed into its addressing fields."""

    base: str
    context_id: int
    component: str
    file_area: str
    file_name: str
    item_id: int = 0
    file_path: str = "/"
    query: str = ""


@dataclass(frozen=True)
class FileMetadata:
    """Metadata reported by a file store for a resolved reference."""

    exists: bool
    width: Optional[int] = None
    height: Optional[int] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    @classmethod
    def missing(cls) -> "FileMetadata":
        return cls(exists=False)

    @property
    def has_dimensions(self) -> bool:
        return bool(self.width) and bool(self.height)


@dataclass(frozen=True)
class RenderPolicy:
    """How a single matched tag should be rendered."""

    redirect_url: bool
    lazy_load: bool
