"""Configuration management for toolfinder."""

from pathlib import Path
from typing import Optional
import yaml
from loguru import logger
from pydantic import BaseModel, Field, field_validator


DEFAULT_CONFIG_LOCATIONS = (
    Path("toolfinder.yaml"),
    Path.home() / ".config" / "toolfinder" / "config.yaml",
)


class SearchConfig(BaseModel):
    debounce_ms: int = 150
    max_results: int = 50

    @field_validator('debounce_ms', 'max_results')
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v


class SuggestionConfig(BaseModel):
    max_suggestions: int = 8
    max_utilities: int = 3
    max_categories: int = 2
    max_keywords: int = 3

    @field_validator('max_suggestions', 'max_utilities', 'max_categories', 'max_keywords')
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("suggestion limits must not be negative")
        return v


class PersonalizationConfig(BaseModel):
    max_recent: int = 10
    storage_key: str = "toolfinder.preferences"
    max_recent_searches: int = 5
    recent_searches_key: str = "toolfinder.recentSearches"

    @field_validator('max_recent', 'max_recent_searches')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class StorageConfig(BaseModel):
    enabled: bool = True
    path: Path = Path.home() / ".config" / "toolfinder" / "storage.json"

    @field_validator('path')
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser()


class Config(BaseModel):
    """Main configuration for the toolfinder engine."""

    catalog_path: Optional[Path] = None
    search: SearchConfig = Field(default_factory=SearchConfig)
    suggestions: SuggestionConfig = Field(default_factory=SuggestionConfig)
    personalization: PersonalizationConfig = Field(default_factory=PersonalizationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @field_validator('catalog_path')
    @classmethod
    def validate_catalog_path(cls, v: Optional[Path]) -> Optional[Path]:
        if v is None:
            return None
        if isinstance(v, str):
            v = Path(v)
        v = v.expanduser()
        if not v.exists():
            logger.warning(f"Catalog path does not exist: {v}")
        return v

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file."""
        if config_path is None:
            for candidate in DEFAULT_CONFIG_LOCATIONS:
                if candidate.exists():
                    config_path = candidate
                    break
            else:
                raise FileNotFoundError(
                    f"No config file found. Searched: {[str(c) for c in DEFAULT_CONFIG_LOCATIONS]}"
                )

        logger.info(f"Loading config from: {config_path}")
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)

        return cls(**(data or {}))

    @classmethod
    def load_or_default(cls, config_path: Optional[Path] = None) -> "Config":
        """Like load(), but fall back to defaults when no file is found."""
        try:
            return cls.load(config_path)
        except FileNotFoundError:
            logger.debug("No config file found, using defaults")
            return cls()

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            yaml.safe_dump(self.model_dump(mode='json'), f, default_flow_style=False)
