"""File stores that resolve decomposed references to image metadata."""

from __future__ import annotations

import io
import logging
import mimetypes
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import unquote

import requests
from filetype import guess
from PIL import Image, UnidentifiedImageError

from .errors import FileLookupError, StoreUnavailableError
from .models import FileMetadata, ImageReference
from .paths import encode_original_url, with_base

logger = logging.getLogger("imageopt")

MAX_IMAGE_BYTES = 10 * 1024 * 1024
SVG_MIME_TYPE = "image/svg+xml"

StoreKey = Tuple[int, str, str, int, Tuple[str, ...]]


def decode_segments(file_path: str, file_name: str) -> List[str]:
    """Percent-decode the path segments and file name of a file-serving URL."""
    segments = [unquote(part) for part in file_path.split("/") if part]
    segments.append(unquote(file_name))
    return segments


def detect_mime_type(data: bytes, filename: str = "") -> Optional[str]:
    """Detect a mime type from the file signature, falling back to the name."""
    kind = guess(data)
    if kind:
        return kind.mime
    guessed, _ = mimetypes.guess_type(filename)
    return guessed


def read_dimensions(source: Union[Path, io.BytesIO]) -> Tuple[Optional[int], Optional[int]]:
    """Return ``(width, height)`` for a raster image, ``(None, None)`` otherwise."""
    try:
        with Image.open(source) as image:
            return image.size
    except Image.DecompressionBombError as exc:
        logger.warning("Not reading image dimensions: %s", exc)
        return None, None
    except (UnidentifiedImageError, OSError) as exc:
        logger.debug("Could not read image dimensions: %s", exc)
        return None, None


class FileStore(ABC):
    """Read-only lookup of stored files by their addressing fields."""

    @abstractmethod
    def resolve(
        self,
        context_id: int,
        component: str,
        file_area: str,
        item_id: int,
        file_path: str,
        file_name: str,
    ) -> FileMetadata:
        """Return metadata for the file, ``FileMetadata.missing()`` if absent.

        Implementations raise :class:`FileLookupError` when this one file
        cannot be inspected and :class:`StoreUnavailableError` when the store
        itself is unreachable.
        """

    def resolve_reference(self, ref: ImageReference) -> FileMetadata:
        return self.resolve(
            ref.context_id,
            ref.component,
            ref.file_area,
            ref.item_id,
            ref.file_path,
            ref.file_name,
        )

    def is_servable(self, ref: ImageReference, metadata: FileMetadata) -> bool:
        """Whether the file may be re-served through the optimiser."""
        if not metadata.exists:
            return False
        return metadata.mime_type is None or metadata.mime_type.startswith("image/")


class MemoryFileStore(FileStore):
    """Dictionary-backed store, handy for tests and embedding hosts."""

    def __init__(self) -> None:
        self._files: Dict[StoreKey, FileMetadata] = {}

    def add(self, ref: ImageReference, metadata: FileMetadata) -> None:
        self._files[_key_for(ref)] = metadata

    def resolve(
        self,
        context_id: int,
        component: str,
        file_area: str,
        item_id: int,
        file_path: str,
        file_name: str,
    ) -> FileMetadata:
        key = _store_key(context_id, component, file_area, item_id, file_path, file_name)
        return self._files.get(key, FileMetadata.missing())


def _store_key(
    context_id: int,
    component: str,
    file_area: str,
    item_id: int,
    file_path: str,
    file_name: str,
) -> StoreKey:
    # Encoded and plain spellings of a name address the same file.
    segments = tuple(decode_segments(file_path, file_name))
    return (context_id, component, file_area, item_id, segments)


def _key_for(ref: ImageReference) -> StoreKey:
    return _store_key(
        ref.context_id,
        ref.component,
        ref.file_area,
        ref.item_id,
        ref.file_path,
        ref.file_name,
    )


def _unsafe_segment(part: str) -> bool:
    return part in ("", ".", "..") or any(char in part for char in ("/", "\\", "\0"))


class LocalFileStore(FileStore):
    """Files laid out on disk as ``<contextid>/<component>/<filearea>/<itemid>/...``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()

    def path_for(
        self,
        context_id: int,
        component: str,
        file_area: str,
        item_id: int,
        file_path: str,
        file_name: str,
    ) -> Optional[Path]:
        """Map addressing fields to a path below ``root``; ``None`` if unsafe."""
        segments = [str(context_id), component, file_area, str(item_id)]
        segments.extend(decode_segments(file_path, file_name))
        if any(_unsafe_segment(part) for part in segments):
            return None
        candidate = self.root.joinpath(*segments)
        try:
            candidate.resolve().relative_to(self.root)
        except ValueError:
            return None
        return candidate

    def resolve(
        self,
        context_id: int,
        component: str,
        file_area: str,
        item_id: int,
        file_path: str,
        file_name: str,
    ) -> FileMetadata:
        path = self.path_for(context_id, component, file_area, item_id, file_path, file_name)
        if path is None:
            logger.warning("Rejected unsafe file reference %s%s", file_path, file_name)
            return FileMetadata.missing()
        if not self.root.is_dir():
            raise StoreUnavailableError(f"File store root {self.root} is not a directory")
        if not path.is_file():
            return FileMetadata.missing()
        try:
            with path.open("rb") as handle:
                header = handle.read(8192)
            file_size = path.stat().st_size
        except OSError as exc:
            raise FileLookupError(str(path), exc) from exc

        mime_type = detect_mime_type(header, path.name)
        width: Optional[int] = None
        height: Optional[int] = None
        if mime_type and mime_type.startswith("image/") and mime_type != SVG_MIME_TYPE:
            width, height = read_dimensions(path)
        return FileMetadata(
            exists=True,
            width=width,
            height=height,
            mime_type=mime_type,
            file_size=file_size,
        )


class HttpFileStore(FileStore):
    """Resolve metadata by fetching the original file from a running site."""

    def __init__(
        self,
        wwwroot: str,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
    ) -> None:
        self.wwwroot = wwwroot
        self.session = session or requests.Session()
        self.timeout = timeout

    def url_for(
        self,
        context_id: int,
        component: str,
        file_area: str,
        item_id: int,
        file_path: str,
        file_name: str,
    ) -> str:
        ref = ImageReference(
            base="",
            context_id=context_id,
            component=component,
            file_area=file_area,
            file_name=file_name,
            item_id=item_id,
            file_path=file_path,
        )
        return encode_original_url(with_base(ref, self.wwwroot))

    def resolve(
        self,
        context_id: int,
        component: str,
        file_area: str,
        item_id: int,
        file_path: str,
        file_name: str,
    ) -> FileMetadata:
        url = self.url_for(context_id, component, file_area, item_id, file_path, file_name)
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise StoreUnavailableError(f"Could not reach {url}: {exc}") from exc
        except requests.RequestException as exc:
            raise FileLookupError(url, exc) from exc

        if resp.status_code == 404:
            return FileMetadata.missing()
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise FileLookupError(url, exc) from exc

        data = resp.content
        content_type = resp.headers.get("Content-Type", "").split(";")[0].strip()
        mime_type = detect_mime_type(data, file_name) or content_type or None
        width: Optional[int] = None
        height: Optional[int] = None
        if len(data) > MAX_IMAGE_BYTES:
            logger.warning(
                "Not probing %s: image larger than %s bytes", url, MAX_IMAGE_BYTES
            )
        elif mime_type and mime_type.startswith("image/") and mime_type != SVG_MIME_TYPE:
            width, height = read_dimensions(io.BytesIO(data))
        return FileMetadata(
            exists=True,
            width=width,
            height=height,
            mime_type=mime_type,
            file_size=len(data),
        )
