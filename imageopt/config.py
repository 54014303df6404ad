"""Configuration objects and constants for the image optimiser filter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .errors import ConfigError
from .utils import parse_bool

DEFAULT_VIRTUAL_NAMESPACE = "filter_imageopt"


@dataclass(frozen=True)
class FilterConfig:
    """Settings that control URL redirection and lazy loading."""

    maxwidth: Optional[int] = None
    loadonvisible: bool = False
    eager_load_count: int = 0
    scale_placeholder: bool = False
    virtual_namespace: str = DEFAULT_VIRTUAL_NAMESPACE

    def __post_init__(self) -> None:
        if self.maxwidth is not None and self.maxwidth <= 0:
            raise ConfigError("maxwidth", self.maxwidth, "must be a positive integer")
        if self.eager_load_count < 0:
            raise ConfigError(
                "eagerloadcount", self.eager_load_count, "must not be negative"
            )
        if not self.virtual_namespace or "/" in self.virtual_namespace:
            raise ConfigError(
                "virtual_namespace", self.virtual_namespace, "must be a single path segment"
            )

    @property
    def redirect_enabled(self) -> bool:
        return self.maxwidth is not None

    @property
    def enabled(self) -> bool:
        """Whether the filter would change anything at all."""
        return self.redirect_enabled or self.loadonvisible

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "FilterConfig":
        """Build a config from host key/value settings (strings allowed)."""
        maxwidth = _parse_int(values, "maxwidth")
        if maxwidth == 0:
            maxwidth = None
        eager = _parse_int(values, "eagerloadcount") or 0
        return cls(
            maxwidth=maxwidth,
            loadonvisible=_parse_flag(values, "loadonvisible"),
            eager_load_count=eager,
            scale_placeholder=_parse_flag(values, "scaleplaceholder"),
            virtual_namespace=str(
                values.get("virtualnamespace") or DEFAULT_VIRTUAL_NAMESPACE
            ),
        )


def _parse_int(values: Mapping[str, Any], key: str) -> Optional[int]:
    raw = values.get(key)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ConfigError(key, raw, "expected an integer")
    try:
        return int(str(raw).strip())
    except ValueError as exc:
        raise ConfigError(key, raw, "expected an integer") from exc


def _parse_flag(values: Mapping[str, Any], key: str) -> bool:
    raw = values.get(key)
    if raw is None:
        return False
    try:
        return parse_bool(raw)
    except ValueError as exc:
        raise ConfigError(key, raw, "expected a boolean") from exc


def describe_loadonvisible(config: FilterConfig) -> str:
    """Human readable label for the lazy loading setting."""
    if not config.loadonvisible:
        return "No placeholding, load immediately"
    if config.eager_load_count == 0:
        return "All images"
    return f"After {config.eager_load_count} image(s)"
