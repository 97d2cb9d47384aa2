"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional, Sequence

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.models import PreferenceWindow, RankingPreferences


class DefaultsConfig(BaseModel):
    """Default settings for search."""
    min_duration_minutes: int = 30
    search_days: int = 7

    @field_validator("min_duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure the minimum duration is not negative."""
        if value < 0:
            raise ValueError("min_duration_minutes must not be negative")
        return value

    @field_validator("search_days")
    @classmethod
    def validate_search_days(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("search_days must be greater than zero")
        return value


class Participant(BaseModel):
    """Participant configuration."""
    name: str  # Used as alias
    email: str
    calendar_id: str = ""  # Optional: for event file mapping

    def display_name(self) -> str:
        """Get display name."""
        return self.name


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "UTC"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    preferred_windows: List[str] = Field(default_factory=list)
    allowed_days: List[int] = Field(default_factory=lambda: list(range(7)))  # Sunday=0
    participants: List[Participant] = Field(default_factory=list)
    events_file: Optional[Path] = None
    blocks_file: Optional[Path] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the zone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("preferred_windows")
    @classmethod
    def validate_preferred_windows(cls, value: List[str]) -> List[str]:
        """Ensure every window parses as HH:MM-HH:MM."""
        for window in value:
            PreferenceWindow.parse(window)
        return value

    @field_validator("allowed_days")
    @classmethod
    def validate_allowed_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"allowed_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        seen: set[int] = set()
        deduped: List[int] = []
        for day in value:
            if day not in seen:
                deduped.append(day)
                seen.add(day)
        return deduped

    @field_validator("participants")
    @classmethod
    def validate_participants(cls, value: List[Participant]) -> List[Participant]:
        """Ensure participant aliases and emails are unique."""
        seen_names: set[str] = set()
        seen_emails: set[str] = set()
        for participant in value:
            name_key = participant.name.lower()
            email_key = participant.email.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate participant name detected: {participant.name}")
            if email_key in seen_emails:
                raise ValueError(f"Duplicate participant email detected: {participant.email}")
            seen_names.add(name_key)
            seen_emails.add(email_key)
        return value

    def ranking_preferences(self) -> RankingPreferences:
        """Build the ranker's preferences from the configured windows."""
        return RankingPreferences.from_strings(self.preferred_windows)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative ``events_file`` / ``blocks_file`` paths are resolved against
        the directory holding the config file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

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
        base_dir = config_path.parent
        if config.events_file is not None and not config.events_file.is_absolute():
            config.events_file = base_dir / config.events_file
        if config.blocks_file is not None and not config.blocks_file.is_absolute():
            config.blocks_file = base_dir / config.blocks_file
        return config

    def find_participant_by_name(self, name: str) -> Participant | None:
        """Find a participant by their name (alias)."""
        for participant in self.participants:
            if participant.name.lower() == name.lower():
                return participant
        return None

    def find_participant_by_email(self, email: str) -> Participant | None:
        """Find a participant by their email."""
        for participant in self.participants:
            if participant.email.lower() == email.lower():
                return participant
        return None

    def resolve_participant(self, identifier: str) -> str:
        """
        Resolve a participant identifier (name/alias or email) to an email address.

        Args:
            identifier: Name/alias or email address

        Returns:
            Email address

        Raises:
            ValueError: If identifier cannot be resolved
        """
        # Check if it's an email (contains @)
        if "@" in identifier:
            return identifier.lower()

        participant = self.find_participant_by_name(identifier)
        if participant:
            return participant.email.lower()

        raise ValueError(
            f"Unknown participant identifier: '{identifier}'. "
            f"Use an email address or a configured name."
        )

    def resolve_participants(self, identifiers: Sequence[str]) -> List[str]:
        """
        Resolve multiple participant identifiers, ensuring uniqueness.

        Args:
            identifiers: Iterable of participant aliases or email addresses.

        Returns:
            List of unique participant email addresses.
        """
        if not identifiers:
            raise ValueError("No participants provided.")

        resolved_emails: List[str] = []
        unknown_identifiers: List[str] = []

        for identifier in identifiers:
            try:
                email = self.resolve_participant(identifier)
            except ValueError:
                unknown_identifiers.append(identifier)
                continue

            if email not in resolved_emails:
                resolved_emails.append(email)

        if unknown_identifiers:
            missing = ", ".join(sorted(set(unknown_identifiers)))
            raise ValueError(
                f"Unknown participant identifier(s): {missing}. "
                "Ensure they exist in the configuration or provide valid email addresses."
            )

        return resolved_emails


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
