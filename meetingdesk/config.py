"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

import pendulum
import yaml
from pydantic import BaseModel, field_validator

ENV_URL = "SUPABASE_URL"
ENV_ANON_KEY = "SUPABASE_ANON_KEY"
ENV_SERVICE_ROLE_KEY = "SUPABASE_SERVICE_ROLE_KEY"


class AppConfig(BaseModel):
    """Application configuration."""
    supabase_url: str
    supabase_key: Optional[str] = None
    timezone: str = "Europe/Berlin"
    request_timeout: float = 30
    watch_interval: float = 5
    mock_data: Optional[Path] = None

    @field_validator("supabase_url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """Ensure the project URL is an http(s) URL without trailing slash."""
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"supabase_url must start with http:// or https://, got {value!r}")
        return value.rstrip("/")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("request_timeout", "watch_interval")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @classmethod
    def load_from_yaml(
        cls,
        config_path: Path,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        """
        Load configuration from YAML file, applying environment overrides.

        Args:
            config_path: Path to the YAML config file
            environ: Environment to read overrides from (defaults to os.environ)

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

        data = apply_environment(data, os.environ if environ is None else environ)

        # Relative mock data paths are relative to the config file
        mock_data = data.get("mock_data")
        if mock_data and not Path(mock_data).is_absolute():
            data["mock_data"] = config_path.parent / mock_data

        return cls(**data)


def apply_environment(data: dict, environ: Mapping[str, str]) -> dict:
    """
    Override connection settings from the environment.

    The service role key wins over the anon key, and both win over the file.
    """
    merged = dict(data)

    if environ.get(ENV_URL):
        merged["supabase_url"] = environ[ENV_URL]

    key = environ.get(ENV_SERVICE_ROLE_KEY) or environ.get(ENV_ANON_KEY)
    if key:
        merged["supabase_key"] = key

    return merged


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of meetingdesk/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
