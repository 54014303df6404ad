"""Tests for filter configuration."""

from __future__ import annotations

import pytest

from imageopt.config import FilterConfig, describe_loadonvisible
from imageopt.errors import ConfigError


class TestFilterConfig:
    """Tests for FilterConfig."""

    def test_defaults(self) -> None:
        config = FilterConfig()
        assert config.maxwidth is None
        assert not config.loadonvisible
        assert config.eager_load_count == 0
        assert config.virtual_namespace == "filter_imageopt"
        assert not config.enabled

    def test_redirect_enabled_by_maxwidth(self) -> None:
        assert FilterConfig(maxwidth=480).redirect_enabled
        assert FilterConfig(loadonvisible=True).enabled
        assert not FilterConfig(loadonvisible=True).redirect_enabled

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"maxwidth": 0},
            {"maxwidth": -10},
            {"eager_load_count": -1},
            {"virtual_namespace": ""},
            {"virtual_namespace": "a/b"},
        ],
    )
    def test_invalid_values(self, kwargs) -> None:
        with pytest.raises(ConfigError):
            FilterConfig(**kwargs)


class TestFromMapping:
    """Tests for parsing host settings."""

    def test_string_settings(self) -> None:
        config = FilterConfig.from_mapping({"maxwidth": "480", "loadonvisible": "1"})
        assert config == FilterConfig(maxwidth=480, loadonvisible=True)

    def test_native_values(self) -> None:
        config = FilterConfig.from_mapping(
            {
                "maxwidth": 800,
                "loadonvisible": True,
                "eagerloadcount": 3,
                "scaleplaceholder": "yes",
                "virtualnamespace": "local_opt",
            }
        )
        assert config.maxwidth == 800
        assert config.eager_load_count == 3
        assert config.scale_placeholder
        assert config.virtual_namespace == "local_opt"

    def test_unset_and_zero_maxwidth_disable_redirect(self) -> None:
        assert FilterConfig.from_mapping({}).maxwidth is None
        assert FilterConfig.from_mapping({"maxwidth": ""}).maxwidth is None
        assert FilterConfig.from_mapping({"maxwidth": "0"}).maxwidth is None

    @pytest.mark.parametrize(
        "values",
        [
            {"maxwidth": "wide"},
            {"maxwidth": True},
            {"loadonvisible": "sometimes"},
            {"eagerloadcount": "-2"},
        ],
    )
    def test_invalid_settings(self, values) -> None:
        with pytest.raises(ConfigError):
            FilterConfig.from_mapping(values)


@pytest.mark.parametrize(
    ("config", "label"),
    [
        (FilterConfig(maxwidth=480), "No placeholding, load immediately"),
        (FilterConfig(loadonvisible=True), "All images"),
        (FilterConfig(loadonvisible=True, eager_load_count=2), "After 2 image(s)"),
    ],
)
def test_describe_loadonvisible(config: FilterConfig, label: str) -> None:
    assert describe_loadonvisible(config) == label
