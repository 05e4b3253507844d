"""
Tests for configuration overrides.
"""

import json

import pytest

from timeline_config import DEFAULT_CONFIG, TimelineConfig, load_config


class TestTimelineConfig:
    def test_defaults(self):
        assert DEFAULT_CONFIG.axis.max_labels == 14
        assert DEFAULT_CONFIG.axis.hysteresis_pct == pytest.approx(0.08)
        assert DEFAULT_CONFIG.events.max_per_group == 4
        assert DEFAULT_CONFIG.zoom.min_visible_span_years == pytest.approx(1 / (365 * 24))

    def test_partial_override(self):
        config = TimelineConfig.from_dict({"axis": {"max_labels": 10, "thresholds": {"month_upper_years": 2}}})
        assert config.axis.max_labels == 10
        assert config.axis.thresholds.month_upper_years == 2
        assert config.axis.thresholds.week_upper_years == DEFAULT_CONFIG.axis.thresholds.week_upper_years
        assert config.events == DEFAULT_CONFIG.events

    def test_lists_become_tuples(self):
        config = TimelineConfig.from_dict({"axis": {"year_steps": [1, 5, 10]}})
        assert config.axis.year_steps == (1, 5, 10)

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown keys in config.axis: bogus"):
            TimelineConfig.from_dict({"axis": {"bogus": 1}})

    def test_section_must_be_object(self):
        with pytest.raises(ValueError, match="Expected an object"):
            TimelineConfig.from_dict({"zoom": 5})


class TestLoadConfig:
    def test_none_returns_defaults(self):
        assert load_config(None) is DEFAULT_CONFIG

    def test_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"zoom": {"scale_max": 8}}), encoding="utf-8")
        assert load_config(path).zoom.scale_max == 8

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.json")
