"""Resolver configuration.

A ``ResolverConfig`` is passed explicitly into every resolve() call; there
is no process-wide session. Values come from ``Constants`` defaults, an
optional YAML file and ``DEPCLOSURE_*`` environment variables, in that
order of increasing precedence. CLI flags are applied last by the caller.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

import yaml

from .constants import Constants
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolverConfig:
    """Tunables for one resolution."""

    max_workers: int = Constants.MAX_WORKERS
    retry_attempts: int = Constants.HTTP_RETRY_MAX
    retry_base_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC
    retry_max_delay: float = Constants.HTTP_RETRY_MAX_DELAY_SEC
    request_timeout: float = Constants.REQUEST_TIMEOUT
    max_depth: int = Constants.MAX_DEPTH
    strict: bool = True
    follow_transitive_optionals: bool = False
    verify_checksums: bool = True
    user_agent: str = Constants.USER_AGENT

    def __post_init__(self):
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if self.retry_attempts < 1:
            raise ConfigurationError("retry_attempts must be at least 1")
        if self.retry_base_delay < 0 or self.retry_max_delay < 0:
            raise ConfigurationError("retry delays must not be negative")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if self.max_depth < 1:
            raise ConfigurationError("max_depth must be at least 1")

    def merged(self, overrides: Mapping[str, Any]) -> "ResolverConfig":
        """Return a copy with ``overrides`` coerced to each field's type; None values are ignored."""
        known = {f.name: f for f in fields(self)}
        changes: Dict[str, Any] = {}
        for name, raw in overrides.items():
            if raw is None:
                continue
            if name not in known:
                raise ConfigurationError(f"Unknown resolver setting '{name}'")
            changes[name] = _coerce(name, raw, type(getattr(self, name)))
        return replace(self, **changes) if changes else self


def _coerce(name: str, raw: Any, kind: type) -> Any:
    if kind is bool:
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off"):
            return False
        raise ConfigurationError(f"Setting '{name}' expects a boolean, got '{raw}'")
    try:
        return kind(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Setting '{name}' expects {kind.__name__}, got '{raw}'") from None


def _load_yaml_config(path: str) -> Dict[str, Any]:
    """Read the resolver section of a YAML config file."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {path}") from None
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Config file {path} is not valid YAML: {exc}") from None
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    section = data.get(Constants.CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{Constants.CONFIG_SECTION}' in {path} must be a mapping")
    return section


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for f in fields(ResolverConfig):
        value = environ.get(Constants.ENV_PREFIX + f.name.upper())
        if value is not None and value.strip():
            overrides[f.name] = value.strip()
    return overrides


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ResolverConfig:
    """Build a ResolverConfig from defaults, an optional YAML file and the environment."""
    config = ResolverConfig()
    if path:
        config = config.merged(_load_yaml_config(path))
        logger.debug("Loaded resolver config from %s", path)
    return config.merged(_env_overrides(os.environ if environ is None else environ))
