"""Rewrite file-serving ``<img>`` tags to use the optimiser and lazy loading."""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import FilterConfig
from .errors import FileLookupError
from .matcher import iter_image_tags
from .models import FileMetadata, ImageTagMatch, RenderPolicy
from .paths import decode_url, encode_optimised_url
from .placeholders import empty_image, placeholder_size
from .store import FileStore
from .utils import escape_attribute, insert_attribute, replace_span
from .visibility import VisibilityPolicy

logger = logging.getLogger("imageopt")

LOAD_ON_VISIBLE_ATTRIBUTE = "data-loadonvisible"


class ImageOptFilter:
    """Text filter that routes stored images through the optimiser endpoint."""

    def __init__(
        self,
        config: FilterConfig,
        store: FileStore,
        policy: Optional[VisibilityPolicy] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.policy = policy or VisibilityPolicy()

    def transform(self, html: str, config: Optional[FilterConfig] = None) -> str:
        """Return ``html`` with every eligible image tag rewritten.

        Text outside the rewritten tags is copied through unchanged, and the
        input object itself is returned when nothing needed rewriting.
        """
        config = config or self.config
        if not config.enabled:
            return html

        pieces: List[str] = []
        cursor = 0
        ordinal = 0
        for match in iter_image_tags(html):
            ordinal += 1
            replacement = self.process_image_tag(match, ordinal, config)
            if replacement is None:
                continue
            pieces.append(html[cursor : match.start])
            pieces.append(replacement)
            cursor = match.end

        if not pieces:
            return html
        logger.debug("Rewrote %d of %d image tag(s)", len(pieces) // 2, ordinal)
        pieces.append(html[cursor:])
        return "".join(pieces)

    def process_image_tag(
        self, match: ImageTagMatch, ordinal: int, config: FilterConfig
    ) -> Optional[str]:
        """Return the replacement for one tag, or ``None`` to leave it alone."""
        ref = decode_url(match.src)
        if ref is None:
            logger.debug("Skipping %s: not a file-serving URL", match.src)
            return None
        if ref.component == config.virtual_namespace:
            logger.debug("Skipping %s: already served by the optimiser", match.src)
            return None

        try:
            metadata = self.store.resolve_reference(ref)
        except FileLookupError as exc:
            logger.warning("Leaving image %s unchanged: %s", match.src, exc)
            return None
        if not metadata.exists:
            logger.debug("Skipping %s: file not found", match.src)
            return None
        if not self.store.is_servable(ref, metadata):
            logger.debug("Skipping %s: file may not be served", match.src)
            return None

        policy = RenderPolicy(
            redirect_url=config.redirect_enabled,
            lazy_load=self.policy.should_lazy_load(ordinal, config),
        )
        url = match.src
        if policy.redirect_url:
            url = encode_optimised_url(ref, config.virtual_namespace)

        if policy.lazy_load:
            return self.apply_loadonvisible(match, url, metadata, config)
        if policy.redirect_url:
            return self.process_image_src(match, url)
        return None

    def process_image_src(self, match: ImageTagMatch, url: str) -> str:
        """Point the tag's src at ``url``, keeping every other byte."""
        return replace_span(match.tag, match.src_start, match.src_end, url)

    def apply_loadonvisible(
        self,
        match: ImageTagMatch,
        url: str,
        metadata: FileMetadata,
        config: FilterConfig,
    ) -> str:
        """Swap src for a sized placeholder and defer ``url`` until visible."""
        width, height = placeholder_size(metadata, config)
        placeholder = escape_attribute(empty_image(width, height), match.quote)
        tag = replace_span(match.tag, match.src_start, match.src_end, placeholder)
        return insert_attribute(tag, LOAD_ON_VISIBLE_ATTRIBUTE, url, match.quote)
