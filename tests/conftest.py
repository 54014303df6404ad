"""Pytest configuration and fixtures."""

from __future__ import annotations

import struct
import zlib
from pathlib import Path

import pytest
from PIL import Image

from imageopt.config import FilterConfig
from imageopt.models import FileMetadata, ImageReference
from imageopt.store import MemoryFileStore

WWWROOT = "http://www.example.com/moodle"
FIXTURE_FILE = "testpng_2880x1800.png"


def write_png(path: Path, width: int, height: int, color: str = "red") -> Path:
    """Create a PNG of the given size, including parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (width, height), color).save(path, format="PNG")
    return path


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(kind + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", crc)


def write_png_header(path: Path, width: int, height: int) -> Path:
    """Write a tiny PNG whose header declares ``width`` x ``height`` pixels."""
    path.parent.mkdir(parents=True, exist_ok=True)
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    path.write_bytes(
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(b""))
        + _png_chunk(b"IEND", b"")
    )
    return path


def original_url(context_id: int = 5, file_name: str = FIXTURE_FILE, item_id: int = 0) -> str:
    return f"{WWWROOT}/pluginfile.php/{context_id}/mod_label/intro/{item_id}/{file_name}"


def optimised_url(context_id: int = 5, file_name: str = FIXTURE_FILE, item_id: int = 0) -> str:
    return f"{WWWROOT}/pluginfile.php/{context_id}/filter_imageopt/intro/{item_id}/mod_label/{file_name}"


def label_reference(context_id: int = 5, file_name: str = FIXTURE_FILE, item_id: int = 0) -> ImageReference:
    return ImageReference(
        base=f"{WWWROOT}/",
        context_id=context_id,
        component="mod_label",
        file_area="intro",
        file_name=file_name,
        item_id=item_id,
    )


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def memory_store() -> MemoryFileStore:
    """Store holding one 2880x1800 PNG in a label intro area (context 5)."""
    store = MemoryFileStore()
    store.add(
        label_reference(),
        FileMetadata(exists=True, width=2880, height=1800, mime_type="image/png"),
    )
    return store


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    """On-disk store root with the fixture image at context 5."""
    root = tmp_path / "filedir"
    write_png(root / "5" / "mod_label" / "intro" / "0" / FIXTURE_FILE, 2880, 1800)
    return root


# =============================================================================
# Config Fixtures
# =============================================================================


@pytest.fixture
def eager_config() -> FilterConfig:
    return FilterConfig(maxwidth=480, loadonvisible=False)


@pytest.fixture
def lazy_config() -> FilterConfig:
    return FilterConfig(maxwidth=480, loadonvisible=True)
