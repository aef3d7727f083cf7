"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import date, time
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import ConfigurationError, InvalidInputError
from .domain.models import DateOverride, EventParameters, Schedule, WeeklyRule
from .domain.timezones import resolve_timezone


def _coerce_wall_time(value):
    """
    Accept unquoted YAML times.

    PyYAML reads `17:00` as the base-60 integer 1020; turn it back into 17:00.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        hours, minutes = divmod(value, 60)
        if not 0 <= hours <= 23:
            raise ValueError(f"Invalid time of day: {value}")
        return time(hours, minutes)
    return value


class WeeklyRuleConfig(BaseModel):
    """Recurring hours; days use 0=Sunday .. 6=Saturday."""
    days: List[int]
    start: time
    end: time

    @field_validator("start", "end", mode="before")
    @classmethod
    def coerce_times(cls, value):
        return _coerce_wall_time(value)

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"days must be between 0 and 6, got {invalid_days}")
        if not value:
            raise ValueError("days must not be empty")
        # Preserve order while removing duplicates
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def validate_hours_order(self) -> "WeeklyRuleConfig":
        """Ensure the configured window opens before it closes."""
        if self.end <= self.start:
            raise ValueError("end must be later than start")
        return self

    def to_rule(self) -> WeeklyRule:
        return WeeklyRule(days=frozenset(self.days), start_time=self.start, end_time=self.end)


class DateOverrideConfig(BaseModel):
    """Hours for one date; start == end blocks the day."""
    date: date
    start: time = time(0, 0)
    end: time = time(0, 0)

    @field_validator("start", "end", mode="before")
    @classmethod
    def coerce_times(cls, value):
        return _coerce_wall_time(value)

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DateOverrideConfig":
        if self.end < self.start:
            raise ValueError(f"Override for {self.date} ends before it starts")
        return self

    def to_override(self) -> DateOverride:
        return DateOverride(date=self.date, start_time=self.start, end_time=self.end)


class ScheduleConfig(BaseModel):
    """Weekly hours plus date overrides."""
    weekly: List[WeeklyRuleConfig] = Field(default_factory=list)
    overrides: List[DateOverrideConfig] = Field(default_factory=list)

    @field_validator("overrides")
    @classmethod
    def validate_unique_dates(cls, value: List[DateOverrideConfig]) -> List[DateOverrideConfig]:
        """Only one override per date is allowed."""
        seen: set[date] = set()
        for override in value:
            if override.date in seen:
                raise ValueError(f"Duplicate override for {override.date}")
            seen.add(override.date)
        return value


class EventTypeConfig(BaseModel):
    """A bookable service such as a haircut."""
    slug: str
    title: str = ""
    length: int = 30
    slot_interval: Optional[int] = None
    minimum_notice: int = 120
    before_buffer: int = 0
    after_buffer: int = 0

    @field_validator("length")
    @classmethod
    def validate_length(cls, value: int) -> int:
        """Ensure event length is positive."""
        if value <= 0:
            raise ValueError("length must be greater than zero")
        return value

    @field_validator("slot_interval")
    @classmethod
    def validate_slot_interval(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("slot_interval must be greater than zero")
        return value

    @field_validator("minimum_notice", "before_buffer", "after_buffer")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("notice and buffers must not be negative")
        return value

    def display_name(self) -> str:
        return self.title or self.slug

    def to_event_parameters(self) -> EventParameters:
        return EventParameters(
            length_minutes=self.length,
            slot_interval_minutes=self.slot_interval,
            minimum_notice_minutes=self.minimum_notice,
            before_buffer_minutes=self.before_buffer,
            after_buffer_minutes=self.after_buffer,
        )


class CalendarSourceConfig(BaseModel):
    """An external calendar contributing busy time."""
    provider: Literal["google", "graph", "file"]
    name: str = ""
    access_token: str = ""
    calendar_ids: List[str] = Field(default_factory=list)  # google ids or graph mailboxes
    path: Optional[Path] = None

    @model_validator(mode="after")
    def validate_provider_fields(self) -> "CalendarSourceConfig":
        if self.provider == "file" and self.path is None:
            raise ValueError("file calendars need a path")
        if self.provider in ("google", "graph") and not self.access_token:
            raise ValueError(f"{self.provider} calendars need an access_token")
        if self.provider == "graph" and not self.calendar_ids:
            raise ValueError("graph calendars need at least one mailbox in calendar_ids")
        return self

    def display_name(self) -> str:
        return self.name or self.provider


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Belgrade"
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    event_types: List[EventTypeConfig] = Field(default_factory=list)
    bookings_file: Optional[Path] = None
    calendars: List[CalendarSourceConfig] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            resolve_timezone(value)
        except InvalidInputError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @field_validator("event_types")
    @classmethod
    def validate_event_types(cls, value: List[EventTypeConfig]) -> List[EventTypeConfig]:
        """Ensure event type slugs are unique."""
        seen_slugs: set[str] = set()
        for event_type in value:
            slug_key = event_type.slug.lower()
            if slug_key in seen_slugs:
                raise ValueError(f"Duplicate event type slug detected: {event_type.slug}")
            seen_slugs.add(slug_key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative file paths inside the config are resolved against the
        config file's directory.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        return config.with_base_dir(config_path.parent)

    def with_base_dir(self, base_dir: Path) -> "AppConfig":
        """Return a copy whose relative data file paths point into ``base_dir``."""
        def resolve(path: Optional[Path]) -> Optional[Path]:
            if path is None or path.is_absolute():
                return path
            return base_dir / path

        return self.model_copy(update={
            "bookings_file": resolve(self.bookings_file),
            "calendars": [
                calendar.model_copy(update={"path": resolve(calendar.path)})
                for calendar in self.calendars
            ],
        })

    def to_schedule(self) -> Schedule:
        return Schedule(
            timezone=self.timezone,
            weekly_rules=tuple(rule.to_rule() for rule in self.schedule.weekly),
            date_overrides=tuple(o.to_override() for o in self.schedule.overrides),
        )

    def find_event_type(self, slug: str) -> EventTypeConfig:
        """
        Look up an event type by slug (case-insensitive).

        Raises:
            ConfigurationError: If no event type has that slug
        """
        for event_type in self.event_types:
            if event_type.slug.lower() == slug.lower():
                return event_type

        known = ", ".join(e.slug for e in self.event_types) or "none configured"
        raise ConfigurationError(f"Unknown event type '{slug}'. Known event types: {known}")


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
