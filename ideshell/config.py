"""Runtime configuration for the server and the local terminal."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from .filestore import DEFAULT_PROJECT_NAME

ENV_PREFIX = 'IDESHELL_'


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(ENV_PREFIX + name, default)


def _env_bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() not in ('0', 'false', 'no', 'off', '')


@dataclass
class AppConfig:
    """Configuration for one ideshell process."""
    database_url: Optional[str] = None
    host: str = '127.0.0.1'
    port: int = 5000
    log_level: str = 'INFO'
    project_name: str = DEFAULT_PROJECT_NAME
    seed: bool = True
    api_prefix: str = '/api'
    cors_origins: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Build a config from IDESHELL_* variables (DATABASE_URL also works)."""
        origins = _env('CORS_ORIGINS', '')
        return cls(
            database_url=_env('DATABASE_URL') or os.environ.get('DATABASE_URL'),
            host=_env('HOST', cls.host),
            port=int(_env('PORT', str(cls.port))),
            log_level=_env('LOG_LEVEL', cls.log_level).upper(),
            project_name=_env('PROJECT_NAME', cls.project_name),
            seed=_env_bool('SEED', cls.seed),
            api_prefix=_env('API_PREFIX', cls.api_prefix).rstrip('/'),
            cors_origins=[o.strip() for o in origins.split(',') if o.strip()],
        )
