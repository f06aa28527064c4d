"""Settings loaded from a YAML file, the environment, and CLI options."""

import os
from pathlib import Path
from typing import Mapping, Optional
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError
from .provider import DEFAULT_MODEL, DEFAULT_TIMEOUT
from .views import SortOption


DEFAULT_CONFIG_FILE = 'sentinel.yaml'
DEFAULT_DATA_DIR = Path.home() / '.sentinel_llm'

# Environment variable -> setting name. Earlier entries win for the same setting.
ENV_VARS = [
    ('GEMINI_API_KEY', 'api_key'),
    ('API_KEY', 'api_key'),
    ('SENTINEL_MODEL', 'model'),
    ('SENTINEL_DATA_DIR', 'data_dir'),
    ('SENTINEL_EXPORT_DIR', 'export_dir'),
]


class Settings(BaseModel):
    """Runtime configuration."""
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    data_dir: Path = DEFAULT_DATA_DIR
    export_dir: Optional[Path] = None
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    default_sort: SortOption = SortOption.SEVERITY_DESC

    @field_validator('data_dir', 'export_dir')
    @classmethod
    def expand_user(cls, v: Optional[Path]) -> Optional[Path]:
        return v.expanduser() if v is not None else v

    @model_validator(mode='after')
    def default_export_dir(self) -> 'Settings':
        if self.export_dir is None:
            self.export_dir = self.data_dir / 'exports'
        return self


def _load_yaml(path: Path) -> dict:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML parse error in {path}: {e}") from e
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return content


def _from_env(env: Mapping[str, str]) -> dict:
    values: dict = {}
    for var, name in ENV_VARS:
        value = env.get(var, '').strip()
        if value and name not in values:
            values[name] = value
    return values


def load_settings(
    path: Optional[str | Path] = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, object]] = None,
) -> Settings:
    """Merge config file, environment and explicit overrides (highest precedence last)."""
    env = os.environ if env is None else env

    if path is None and env.get('SENTINEL_CONFIG'):
        path = env['SENTINEL_CONFIG']
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Config file does not exist: {config_path}")
        values = _load_yaml(config_path)
    elif Path(DEFAULT_CONFIG_FILE).exists():
        values = _load_yaml(Path(DEFAULT_CONFIG_FILE))
    else:
        values = {}

    values.update(_from_env(env))
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
