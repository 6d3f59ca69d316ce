"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.exceptions import ConfigurationError


class DefaultsConfig(BaseModel):
    """Default settings for slot search."""
    slot_granularity_minutes: int = 30
    min_lead_minutes: int = 0
    request_timeout_seconds: int = 30

    @field_validator("slot_granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Keep the step between candidate slots within a sensible range."""
        if not 5 <= value <= 240:
            raise ValueError(f"slot_granularity_minutes must be between 5 and 240, got {value}")
        return value

    @field_validator("min_lead_minutes")
    @classmethod
    def validate_lead(cls, value: int) -> int:
        """Lead time cannot be negative."""
        if value < 0:
            raise ValueError("min_lead_minutes must not be negative")
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: int) -> int:
        """Ensure HTTP timeout is positive."""
        if value <= 0:
            raise ValueError("request_timeout_seconds must be greater than zero")
        return value


class BarberAlias(BaseModel):
    """Short name for a barber used on the command line."""
    alias: str
    barber_id: str


class AppConfig(BaseModel):
    """Application configuration."""
    supabase_url: str = ""
    supabase_key: str = ""
    timezone: str = "America/Sao_Paulo"
    booking_window_days: int = 30
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    barbers: List[BarberAlias] = Field(default_factory=list)

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Normalise the project URL so endpoint paths can be appended."""
        return value.strip().rstrip("/")

    @field_validator("booking_window_days")
    @classmethod
    def validate_window(cls, value: int) -> int:
        """Clients must be able to book at least one day ahead."""
        if value < 1:
            raise ValueError("booking_window_days must be at least 1")
        return value

    @field_validator("barbers")
    @classmethod
    def validate_barbers(cls, value: List[BarberAlias]) -> List[BarberAlias]:
        """Ensure barber aliases are unique."""
        seen: set[str] = set()
        for barber in value:
            key = barber.alias.lower()
            if key in seen:
                raise ValueError(f"Duplicate barber alias detected: {barber.alias}")
            seen.add(key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

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

        return cls(**data)

    def require_supabase(self) -> None:
        """
        Check that the store credentials are configured.

        Raises:
            ConfigurationError: If the URL or key is missing
        """
        missing = [
            name for name in ("supabase_url", "supabase_key")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing configuration: {', '.join(missing)}. "
                "Set them in config.yaml or use --mock."
            )

    def resolve_barber(self, identifier: str) -> str:
        """
        Resolve a configured alias to a barber id.

        Anything that is not a known alias is returned unchanged, so ids and
        barber names can be passed straight to the store.
        """
        for barber in self.barbers:
            if barber.alias.lower() == identifier.lower():
                return barber.barber_id
        return identifier


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
