from __future__ import annotations

import logging
import re
from urllib.parse import urlparse

from commerce_analytics.domain.errors import InvalidParameterError, WritesDisabledError
from commerce_analytics.infrastructure.settings_store import AnalyticsSettingsStore

logger = logging.getLogger(__name__)

_IFRAME_SRC = re.compile(r"""src\s*=\s*["']([^"']+)["']""", re.IGNORECASE)


def normalize_embed_url(raw) -> str | None:
    """Extract an embeddable URL from a plain URL or pasted iframe HTML."""
    if not raw or not isinstance(raw, str):
        return None
    url = raw.strip()
    match = _IFRAME_SRC.search(url)
    if match:
        url = match.group(1).strip()
    if not url:
        return None

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return url


class AnalyticsSettingsService:
    def __init__(self, store: AnalyticsSettingsStore, *, allow_writes: bool = True):
        self.store = store
        self.allow_writes = allow_writes

    def get(self) -> dict:
        return {"posthog_dashboard_embed_url": self.store.get_posthog_embed_url()}

    def update(self, payload: dict | None) -> dict:
        if not self.allow_writes:
            raise WritesDisabledError()

        raw = (payload or {}).get("posthog_dashboard_embed_url")
        if raw is not None and not isinstance(raw, str):
            raise InvalidParameterError("posthog_dashboard_embed_url must be a string or null")

        url = normalize_embed_url(raw)
        if url is None and raw and raw.strip():
            raise InvalidParameterError("posthog_dashboard_embed_url is not a valid http(s) URL")

        self.store.set_posthog_embed_url(url)
        logger.info("posthog embed url %s", "updated" if url else "cleared")
        return {"posthog_dashboard_embed_url": url}
