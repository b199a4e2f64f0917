from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from statuspage.errors import ConfigurationError
from statuspage.models import Registry


def load_registry(path: str | Path) -> Registry:
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Missing registry file at {path}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")

    try:
        return Registry.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid registry {path}: {exc}") from exc


def describe_registry(reg: Registry) -> dict[str, dict]:
    """
    Normalized view keyed by check name with the expected status resolved.
    Returns pure python dicts so they serialize cleanly.
    """
    return {
        name: {
            "name": name,
            "url": url,
            "expected_status": reg.expected_status_for(name),
        }
        for name, url in reg.checks.items()
    }
