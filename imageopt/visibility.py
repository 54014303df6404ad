"""Eager versus lazy loading decisions for images on a page."""

from __future__ import annotations

from .config import FilterConfig


def should_lazy_load(ordinal: int, config: FilterConfig) -> bool:
    """Whether the ``ordinal``-th image (1-based) on a page loads on visibility."""
    if not config.loadonvisible:
        return False
    return ordinal > config.eager_load_count


class VisibilityPolicy:
    """Default policy: the first ``eager_load_count`` images load immediately.

    Hosts with their own notion of above-the-fold content can pass a subclass
    to the filter and override :meth:`should_lazy_load`.
    """

    def should_lazy_load(self, ordinal: int, config: FilterConfig) -> bool:
        return should_lazy_load(ordinal, config)
