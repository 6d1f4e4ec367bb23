"""Configuration management.

Loads and merges configuration from multiple sources with proper precedence.
"""

import json
import os
from contextvars import ContextVar, Token
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import ValidationError

from .config_loader import deep_merge, load_json_file
from .config_schema import Config, LoggingConfig
from .global_paths import GlobalPath
from ..util.log import Log, LogFormat, LogLevel

if TYPE_CHECKING:
    from ..shell.platform import PlatformResolver

log = Log.create({"service": "config"})

__all__ = [
    "Config",
    "ConfigError",
    "ConfigManager",
    "LoggingConfig",
    "apply_logging",
]

CONFIG_FILENAMES = ("bashrun.json", "bashrun.jsonc")

# Single-value overrides applied after every file and BASHRUN_CONFIG_CONTENT
ENV_OVERRIDES = {
    "BASHRUN_TIMEOUT_MS": ("timeout_ms", int),
    "BASHRUN_SHELL": ("shell", str),
}


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Config error in {path}: {message}")


_config_var: ContextVar['ConfigManager'] = ContextVar('_config_var')


class ConfigManager:
    """Configuration management.

    Instance-based with ContextVar for scoping. Class methods delegate
    to the current instance.

    Loads configuration from multiple sources with proper precedence:
    1. Global config (bashrun.json in the user config directory)
    2. Project config (bashrun.json from the filesystem root down to the directory)
    3. BASHRUN_CONFIG_CONTENT (a JSON object)
    4. Single-value environment overrides (BASHRUN_TIMEOUT_MS, BASHRUN_SHELL,
       BASHRUN_LOG_LEVEL)
    """

    def __init__(self) -> None:
        self._cache: Optional[Config] = None
        self._sources: List[str] = []
        self._resolver: Optional["PlatformResolver"] = None

    # -- ContextVar plumbing --

    @classmethod
    def current(cls) -> 'ConfigManager':
        try:
            return _config_var.get()
        except LookupError:
            instance = cls()
            _config_var.set(instance)
            return instance

    @classmethod
    def provide(cls, instance: 'ConfigManager') -> Token['ConfigManager']:
        return _config_var.set(instance)

    @classmethod
    def restore(cls, token: Token['ConfigManager']) -> None:
        _config_var.reset(token)

    # -- Public API (class methods delegate to current instance) --

    @classmethod
    def reset(cls) -> None:
        """Reset cached configuration."""
        inst = cls.current()
        inst._cache = None
        inst._sources = []
        inst._resolver = None

    @classmethod
    async def get(cls) -> Config:
        inst = cls.current()
        if inst._cache is None:
            return inst.read()
        return inst._cache

    @classmethod
    def resolver(cls) -> "PlatformResolver":
        """Platform resolver built from the cached config.

        Shared by every execution in this scope so a successful WSL probe
        is remembered when ``cacheProbe`` is on. Dropped by ``reset()``.
        """
        from ..shell.platform import PlatformResolver

        inst = cls.current()
        if inst._resolver is None:
            inst._resolver = PlatformResolver.from_config(inst.read())
        return inst._resolver

    @classmethod
    def sources(cls) -> List[str]:
        """Files and variables that contributed to the cached config."""
        return cls.current()._sources.copy()

    # -- Instance methods --

    def read(self, directory: str = ".") -> Config:
        """Load and cache configuration for `directory` on this instance."""
        if self._cache is not None:
            return self._cache

        result: Dict[str, Any] = {}
        sources: List[str] = []

        # 1. Global config
        for filename in CONFIG_FILENAMES:
            filepath = os.path.join(GlobalPath.config(), filename)
            data = load_json_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info("loaded global config", {"path": filepath})

        # 2. Project config (search up from directory, apply root first)
        current = Path(directory).resolve()
        project_configs: List[str] = []
        while True:
            for filename in CONFIG_FILENAMES:
                filepath = current / filename
                if filepath.is_file():
                    project_configs.append(str(filepath))
            if current == current.parent:
                break
            current = current.parent

        for filepath in reversed(project_configs):
            data = load_json_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info("loaded project config", {"path": filepath})

        # 3. Environment variable config
        env_config = os.environ.get("BASHRUN_CONFIG_CONTENT")
        if env_config:
            try:
                data = json.loads(env_config)
            except json.JSONDecodeError as e:
                raise ConfigError("BASHRUN_CONFIG_CONTENT", f"invalid JSON: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError("BASHRUN_CONFIG_CONTENT", "expected a JSON object")
            result = deep_merge(result, data)
            sources.append("BASHRUN_CONFIG_CONTENT")
            log.info("loaded config from BASHRUN_CONFIG_CONTENT")

        # 4. Single-value overrides
        for name, (key, kind) in ENV_OVERRIDES.items():
            raw = os.environ.get(name)
            if raw is None or not raw.strip():
                continue
            try:
                value = kind(raw.strip())
            except ValueError as e:
                raise ConfigError(name, f"invalid value {raw!r}") from e
            if _alias(key) != key:
                result.pop(_alias(key), None)
            result[key] = value
            sources.append(name)

        level = os.environ.get("BASHRUN_LOG_LEVEL")
        if level and level.strip():
            result["logging"] = deep_merge(result.get("logging") or {}, {"level": level.strip()})
            sources.append("BASHRUN_LOG_LEVEL")

        try:
            config = Config.model_validate(result)
        except ValidationError as e:
            origin = sources[-1] if sources else "defaults"
            raise ConfigError(origin, str(e)) from e

        self._sources = sources
        self._cache = config
        return config


def _alias(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def apply_logging(config: LoggingConfig, *, console: Optional[bool] = None, level: Optional[str] = None) -> None:
    """Apply a logging section, with CLI flags taking precedence."""
    Log.configure(
        level=LogLevel.parse(level or config.level),
        format=LogFormat.parse(config.format),
        console=console if console is not None else bool(config.console),
        file=bool(config.file),
    )
