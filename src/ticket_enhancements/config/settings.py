"""
Centralized settings and path configuration for ticket enhancements.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def get_package_data_dir() -> Path:
    """Directory holding the bundled rule tables."""
    return Path(__file__).resolve().parent.parent / 'data'


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Directory holding markup_rules.csv, hospitality_assignments.csv, ...
    data_dir: Path

    # Live exchange rates (Frankfurter)
    rates_api_url: str = 'https://api.frankfurter.dev/v1'
    rate_timeout_seconds: float = 5.0
    rate_cache_ttl_seconds: float = 300.0

    # Cache-Control max-age for public read endpoints
    cache_max_age: int = 300

    log_level: str = 'INFO'

    # Local servers started by scripts/run_api.py and scripts/run_app.py
    api_host: str = '127.0.0.1'
    api_port: int = 8000
    ui_port: int = 8501

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        data_dir = os.getenv('TICKET_ENHANCEMENTS_DATA_DIR')

        return cls(
            project_root=root,
            data_dir=Path(data_dir) if data_dir else get_package_data_dir(),
            rates_api_url=os.getenv('RATES_API_URL', cls.rates_api_url).rstrip('/'),
            rate_timeout_seconds=float(os.getenv('RATE_TIMEOUT_SECONDS', cls.rate_timeout_seconds)),
            rate_cache_ttl_seconds=float(os.getenv('RATE_CACHE_TTL_SECONDS', cls.rate_cache_ttl_seconds)),
            log_level=os.getenv('LOG_LEVEL', cls.log_level).upper(),
            api_host=os.getenv('API_HOST', cls.api_host),
            api_port=int(os.getenv('API_PORT', cls.api_port)),
            ui_port=int(os.getenv('UI_PORT', cls.ui_port)),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
