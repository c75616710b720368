"""
Configuration for Typox.

Provides:
- Per-concern configuration dataclasses (registry, query, remote, loader)
- YAML loading with an environment-variable override
- Front-end presets for the CLI and the plugin
- Configuration validation
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from typox.errors import ConfigValidationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TYPOX_CONFIG"

DEFAULT_EXTENSIONS = ["ttl", "turtle", "nt", "nq", "trig", "rdf", "owl", "xml"]


class EmptyResultPolicy(Enum):
    """How a row-set query with zero solutions is reported."""
    ERROR = "error"   # CLI: empty answer is a usage signal
    ALLOW = "allow"   # Plugin: empty array is a valid answer


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigValidationError(f"Configuration section '{name}' must be a mapping")
    return section


@dataclass
class RegistryConfig:
    """Named store registry configuration."""
    default_store: str = "memory"

    def to_dict(self) -> Dict[str, Any]:
        return {"default_store": self.default_store}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["RegistryConfig"] = None) -> "RegistryConfig":
        base = base or cls()
        return cls(default_store=data.get("default_store", base.default_store))


@dataclass
class QueryConfig:
    """Query dispatch configuration."""
    empty_results: EmptyResultPolicy = EmptyResultPolicy.ALLOW
    coerce_booleans: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "empty_results": self.empty_results.value,
            "coerce_booleans": self.coerce_booleans,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["QueryConfig"] = None) -> "QueryConfig":
        base = base or cls()
        policy = data.get("empty_results", base.empty_results.value)
        try:
            empty_results = EmptyResultPolicy(policy)
        except ValueError:
            raise ConfigValidationError(
                f"Invalid empty_results policy '{policy}'. "
                f"Valid options: {[p.value for p in EmptyResultPolicy]}"
            )
        return cls(
            empty_results=empty_results,
            coerce_booleans=data.get("coerce_booleans", base.coerce_booleans),
        )


@dataclass
class RemoteConfig:
    """
    Remote SPARQL endpoint configuration.

    A timeout of None means the request waits indefinitely.
    """
    timeout_seconds: Optional[float] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeout_seconds": self.timeout_seconds,
            "headers": dict(self.headers),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["RemoteConfig"] = None) -> "RemoteConfig":
        base = base or cls()
        return cls(
            timeout_seconds=data.get("timeout_seconds", base.timeout_seconds),
            headers=dict(data.get("headers", base.headers) or {}),
        )


@dataclass
class LoaderConfig:
    """Bulk loader configuration."""
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))

    def to_dict(self) -> Dict[str, Any]:
        return {"extensions": list(self.extensions)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["LoaderConfig"] = None) -> "LoaderConfig":
        base = base or cls()
        extensions = data.get("extensions", base.extensions)
        return cls(extensions=[ext.lower().lstrip(".") for ext in extensions])


@dataclass
class TypoxConfig:
    """Complete Typox configuration."""
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    loader: LoaderConfig = field(default_factory=LoaderConfig)

    @classmethod
    def for_cli(cls) -> "TypoxConfig":
        return cls(query=QueryConfig(empty_results=EmptyResultPolicy.ERROR))

    @classmethod
    def for_plugin(cls) -> "TypoxConfig":
        return cls(query=QueryConfig(empty_results=EmptyResultPolicy.ALLOW, coerce_booleans=True))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registry": self.registry.to_dict(),
            "query": self.query.to_dict(),
            "remote": self.remote.to_dict(),
            "loader": self.loader.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["TypoxConfig"] = None) -> "TypoxConfig":
        """
        Build a config from a dict.

        Keys are merged over ``base`` (plain defaults when omitted): a
        missing section, or a missing key inside a section, keeps the base
        value.
        """
        base = base or cls()
        return cls(
            registry=RegistryConfig.from_dict(_section(data, "registry"), base=base.registry),
            query=QueryConfig.from_dict(_section(data, "query"), base=base.query),
            remote=RemoteConfig.from_dict(_section(data, "remote"), base=base.remote),
            loader=LoaderConfig.from_dict(_section(data, "loader"), base=base.loader),
        )

    @classmethod
    def load(cls, path: str | Path, base: Optional["TypoxConfig"] = None) -> "TypoxConfig":
        """Load configuration from a YAML file."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Configuration file {path} must contain a mapping")
        config = cls.from_dict(data, base=base)
        ConfigValidator.validate_or_raise(config)
        logger.debug(f"Loaded configuration from {path}")
        return config

    @classmethod
    def from_env(cls, base: Optional["TypoxConfig"] = None) -> "TypoxConfig":
        """Load the file named by $TYPOX_CONFIG, or return ``base``/defaults."""
        path = os.environ.get(CONFIG_ENV_VAR)
        if path:
            return cls.load(path, base=base)
        return base or cls()


class ConfigValidator:
    """Validates Typox configuration."""

    @staticmethod
    def validate(config: TypoxConfig) -> List[str]:
        """
        Validate configuration.

        Returns list of error messages (empty if valid).
        """
        errors = []

        if not config.registry.default_store:
            errors.append("default_store cannot be empty")

        timeout = config.remote.timeout_seconds
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                errors.append(f"timeout_seconds must be a number, got {timeout!r}")
            elif timeout <= 0:
                errors.append("timeout_seconds must be positive when set")

        if not config.loader.extensions:
            errors.append("loader extensions cannot be empty")

        return errors

    @staticmethod
    def validate_or_raise(config: TypoxConfig) -> None:
        """Validate configuration, raising on errors."""
        errors = ConfigValidator.validate(config)
        if errors:
            raise ConfigValidationError("; ".join(errors))
