"""
Layered YAML configuration loader.

Layers are merged with precedence base < overlay < tenant < flags, string
values are interpolated from the environment, and the result is validated
into a frozen RouterConfig.
"""

import os
import random
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from careroute.core.exceptions import ConfigurationError
from careroute.core.logging import get_logger
from careroute.models.config import RouterConfig

logger = get_logger(__name__)

_ENV_REF = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def deep_merge(base: Any, override: Any) -> Any:
    """Mappings merge recursively, lists concatenate, anything else is replaced."""
    if isinstance(base, dict) and isinstance(override, dict):
        merged = dict(base)
        for key, value in override.items():
            merged[key] = deep_merge(merged[key], value) if key in merged else value
        return merged
    if isinstance(base, list) and isinstance(override, list):
        return base + override
    return override


def interpolate(value: Any) -> Any:
    """Replace ``${VAR}`` and ``${VAR:default}`` in every string value."""
    if isinstance(value, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), value)
    if isinstance(value, list):
        return [interpolate(v) for v in value]
    if isinstance(value, dict):
        return {k: interpolate(v) for k, v in value.items()}
    return value


def load_config(
    config_root: str = "config",
    overlay: Optional[str] = None,
    tenant: Optional[str] = None,
    base: Optional[str] = None,
) -> RouterConfig:
    """
    Load and validate the router configuration.

    Args:
        config_root: Directory holding base.yml, overlays, tenants/ and flags.yml
        overlay: Environment overlay name (dev, staging, prod)
        tenant: Tenant whose tenants/<tenant>.yml layer applies
        base: Explicit path of the base file (defaults to <config_root>/base.yml)

    Raises:
        ConfigurationError: If the base file is missing, a layer is not valid
            YAML, or the merged configuration fails validation
    """
    root = Path(config_root)
    base_path = Path(base) if base else root / "base.yml"
    if not base_path.exists():
        raise ConfigurationError(f"Base config not found: {base_path}")

    layers = [_read_yaml(base_path)]
    applied = [str(base_path)]

    optional_paths = []
    if overlay:
        optional_paths.append(root / f"{overlay}.yml")
    if tenant:
        optional_paths.append(root / "tenants" / f"{tenant}.yml")
    for path in optional_paths:
        if path.exists():
            layers.append(_read_yaml(path))
            applied.append(str(path))

    flags_path = root / "flags.yml"
    if flags_path.exists():
        layers.append({"flags": _read_yaml(flags_path)})
        applied.append(str(flags_path))

    merged: Dict[str, Any] = {}
    for layer in layers:
        merged = deep_merge(merged, layer)

    try:
        config = RouterConfig.model_validate(interpolate(merged))
    except ValidationError as e:
        errors = "\n".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid config:\n{errors}") from e

    logger.info(
        "config_loaded",
        layers=applied,
        rules=len(config.routing.rules),
        default_provider=config.llm.default_provider,
    )
    return config


def _string_hash(value: str) -> int:
    h = 0
    for ch in value:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


class FeatureFlags:
    def __init__(self, config: RouterConfig):
        self._config = config

    def is_enabled(self, flag: str, default: bool = False) -> bool:
        return self._config.flags.flags.get(flag, default)

    def get_rollout_percent(self, feature: str, default: float = 0) -> float:
        return self._config.flags.rollout.get(feature, default)

    def should_rollout(self, feature: str, user_id: Optional[str] = None, default: float = 0) -> bool:
        """
        Percentage rollout, stable per user when a user id is given.

        ``default`` is the percentage used when the feature has no rollout entry.
        """
        percent = self.get_rollout_percent(feature, default)
        if percent >= 100:
            return True
        if percent <= 0:
            return False
        if user_id:
            return (_string_hash(user_id) % 100) < percent
        return random.random() * 100 < percent
