"""
Tests for loading the YAML configuration.
"""

import pytest
from datetime import date, time
from pathlib import Path

from salonslots.config import AppConfig, EventTypeConfig, WeeklyRuleConfig
from salonslots.domain.exceptions import ConfigurationError
from salonslots.domain.models import is_blocking_override

BASIC_CONFIG = """
timezone: Europe/Belgrade
schedule:
  weekly:
    - days: [1, 2, 3, 4, 5]
      start: 09:00
      end: 17:00
  overrides:
    - date: 2024-12-25
    - date: 2024-12-31
      start: "09:00"
      end: "12:00"
event_types:
  - slug: haircut
    title: Haircut
    length: 30
bookings_file: bookings.json
calendars:
  - provider: file
    path: data/busy.json
"""


def write_config(tmp_path: Path, content: str) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(content, encoding="utf-8")
    return config_path


class TestLoadFromYaml:
    """Tests for AppConfig.load_from_yaml."""

    def test_load_basic_config(self, tmp_path):
        config = AppConfig.load_from_yaml(write_config(tmp_path, BASIC_CONFIG))

        assert config.timezone == "Europe/Belgrade"
        assert config.schedule.weekly[0].days == [1, 2, 3, 4, 5]
        assert config.find_event_type("haircut").length == 30

    def test_unquoted_times_are_read_as_clock_times(self, tmp_path):
        config = AppConfig.load_from_yaml(write_config(tmp_path, BASIC_CONFIG))

        rule = config.schedule.weekly[0]
        assert rule.start == time(9, 0)
        assert rule.end == time(17, 0)

    def test_relative_paths_resolve_against_config_dir(self, tmp_path):
        config = AppConfig.load_from_yaml(write_config(tmp_path, BASIC_CONFIG))

        assert config.bookings_file == tmp_path / "bookings.json"
        assert config.calendars[0].path == tmp_path / "data" / "busy.json"

    def test_to_schedule(self, tmp_path):
        schedule = AppConfig.load_from_yaml(write_config(tmp_path, BASIC_CONFIG)).to_schedule()

        assert schedule.timezone == "Europe/Belgrade"
        assert schedule.weekly_rules[0].days == frozenset({1, 2, 3, 4, 5})
        christmas, new_year = schedule.date_overrides
        assert christmas.date == date(2024, 12, 25)
        assert is_blocking_override(christmas)
        assert new_year.end_time == time(12, 0)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(write_config(tmp_path, "schedule: [unclosed"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(write_config(tmp_path, "- just\n- a list\n"))

    def test_empty_file_uses_defaults(self, tmp_path):
        config = AppConfig.load_from_yaml(write_config(tmp_path, ""))

        assert config.event_types == []
        assert config.to_schedule().weekly_rules == ()


class TestValidation:
    """Validation of individual config sections."""

    def test_unknown_timezone(self):
        with pytest.raises(ValueError):
            AppConfig(timezone="Atlantis/Capital")

    def test_weekday_out_of_range(self):
        with pytest.raises(ValueError, match="between 0 and 6"):
            WeeklyRuleConfig(days=[7], start="09:00", end="17:00")

    def test_duplicate_days_are_removed(self):
        rule = WeeklyRuleConfig(days=[1, 1, 2], start="09:00", end="17:00")

        assert rule.days == [1, 2]

    def test_end_before_start(self):
        with pytest.raises(ValueError, match="end must be later than start"):
            WeeklyRuleConfig(days=[1], start="17:00", end="09:00")

    def test_duplicate_override_dates(self):
        with pytest.raises(ValueError, match="Duplicate override"):
            AppConfig(schedule={"overrides": [{"date": "2024-12-25"}, {"date": "2024-12-25"}]})

    def test_event_length_must_be_positive(self):
        with pytest.raises(ValueError):
            EventTypeConfig(slug="haircut", length=0)

    def test_negative_buffer(self):
        with pytest.raises(ValueError):
            EventTypeConfig(slug="haircut", after_buffer=-5)

    def test_duplicate_event_slugs(self):
        with pytest.raises(ValueError, match="Duplicate event type slug"):
            AppConfig(event_types=[{"slug": "haircut"}, {"slug": "Haircut"}])

    def test_file_calendar_needs_path(self):
        with pytest.raises(ValueError, match="path"):
            AppConfig(calendars=[{"provider": "file"}])

    def test_remote_calendar_needs_token(self):
        with pytest.raises(ValueError, match="access_token"):
            AppConfig(calendars=[{"provider": "google"}])


class TestEventTypes:
    """Tests for event type lookup and conversion."""

    def test_lookup_is_case_insensitive(self):
        config = AppConfig(event_types=[{"slug": "haircut"}])

        assert config.find_event_type("HairCut").slug == "haircut"

    def test_unknown_slug(self):
        config = AppConfig(event_types=[{"slug": "haircut"}])

        with pytest.raises(ConfigurationError, match="Known event types: haircut"):
            config.find_event_type("manicure")

    def test_to_event_parameters(self):
        event_type = EventTypeConfig(
            slug="coloring",
            length=90,
            slot_interval=30,
            minimum_notice=1440,
            before_buffer=15,
            after_buffer=15
        )

        event = event_type.to_event_parameters()

        assert event.length_minutes == 90
        assert event.interval_minutes == 30
        assert event.minimum_notice_minutes == 1440
        assert event.before_buffer_minutes == 15
        assert event.after_buffer_minutes == 15

    def test_display_name_falls_back_to_slug(self):
        assert EventTypeConfig(slug="haircut").display_name() == "haircut"
        assert EventTypeConfig(slug="haircut", title="Men's haircut").display_name() == "Men's haircut"
