"""Exceptions raised by the image optimiser filter."""

from __future__ import annotations

from typing import Optional


class ImageOptError(Exception):
    """Base exception for the image optimiser filter."""


class ConfigError(ImageOptError):
    """A configuration value could not be parsed."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid value for {key!r} ({value!r}): {reason}")


class FileLookupError(ImageOptError):
    """Metadata for a single file could not be fetched.

    Raised by stores for per-file problems; the filter leaves the affected
    tag unchanged and carries on with the rest of the page.
    """

    def __init__(self, location: str, cause: Optional[Exception] = None) -> None:
        self.location = location
        self.cause = cause
        message = f"Failed to look up {location}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class StoreUnavailableError(ImageOptError):
    """The backing file store cannot be reached at all."""
