from __future__ import annotations

import pytest

from commerce_analytics.application.services.settings_service import AnalyticsSettingsService, normalize_embed_url
from commerce_analytics.domain.errors import InvalidParameterError, WritesDisabledError
from commerce_analytics.infrastructure.settings_store import InMemoryAnalyticsSettingsStore

EMBED = "https://eu.posthog.com/embedded/abc123"


@pytest.mark.parametrize(
    "raw, expected",
    [
        (EMBED, EMBED),
        (f"  {EMBED}  ", EMBED),
        (f'<iframe width="100%" height="600" frameborder="0" src="{EMBED}"></iframe>', EMBED),
        (f"<iframe SRC = '{EMBED}' allowfullscreen></iframe>", EMBED),
        ("", None),
        (None, None),
        (42, None),
        ("not a url", None),
        ("javascript:alert(1)", None),
        ("ftp://files.example.com/x", None),
        ('<iframe src=""></iframe>', None),
    ],
)
def test_normalize_embed_url(raw, expected):
    assert normalize_embed_url(raw) == expected


class TestAnalyticsSettingsService:
    def test_round_trip(self):
        service = AnalyticsSettingsService(InMemoryAnalyticsSettingsStore())
        assert service.get() == {"posthog_dashboard_embed_url": None}

        saved = service.update({"posthog_dashboard_embed_url": f'<iframe src="{EMBED}"></iframe>'})
        assert saved == {"posthog_dashboard_embed_url": EMBED}
        assert service.get() == saved

    def test_blank_value_clears(self):
        service = AnalyticsSettingsService(InMemoryAnalyticsSettingsStore(EMBED))
        assert service.update({"posthog_dashboard_embed_url": "  "}) == {"posthog_dashboard_embed_url": None}
        assert service.update({}) == {"posthog_dashboard_embed_url": None}

    def test_invalid_value(self):
        service = AnalyticsSettingsService(InMemoryAnalyticsSettingsStore(EMBED))
        with pytest.raises(InvalidParameterError):
            service.update({"posthog_dashboard_embed_url": "no-scheme.example.com"})
        with pytest.raises(InvalidParameterError):
            service.update({"posthog_dashboard_embed_url": 12})
        assert service.get() == {"posthog_dashboard_embed_url": EMBED}

    def test_writes_disabled(self):
        service = AnalyticsSettingsService(InMemoryAnalyticsSettingsStore(), allow_writes=False)
        with pytest.raises(WritesDisabledError, match="ALLOW_WRITES"):
            service.update({"posthog_dashboard_embed_url": EMBED})
