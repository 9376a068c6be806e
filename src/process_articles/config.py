"""Configuration loader for process_articles."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from common.config import ConfigSingleton, find_config_path, load_yaml
from common.errors import ConfigurationError

CONFIG_DIR = Path(__file__).parent / "configs"


@dataclass
class PolicyConfig:
    premium_reliability_threshold: float = 0.7
    acceptance_threshold: float = 0.4
    min_content_length: int = 50
    max_content_chars: int = 3000
    premium_model: str = "gpt-4o"
    standard_model: str = "gpt-4o-mini"


@dataclass
class BatchConfig:
    default_limit: int = 25
    max_limit: int = 50
    max_retries: int = 3
    delay_seconds: float = 0.5
    auto_approve: bool = True
    fallback_topic_slug: str = "general"


@dataclass
class ProviderConfig:
    timeout_seconds: float = 30.0
    max_attempts: int = 3
    retry_wait_min_seconds: float = 1.0
    retry_wait_max_seconds: float = 2.0


@dataclass
class SweepConfig:
    stale_after_minutes: int = 30
    report_limit: int = 100


@dataclass
class ProcessConfig:
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    sweep: SweepConfig = field(default_factory=SweepConfig)


def _section(data: dict, name: str, cls: type):
    raw = data.get(name) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")
    known = cls.__dataclass_fields__
    unknown = set(raw) - set(known)
    if unknown:
        raise ConfigurationError(
            f"Unknown keys in config section '{name}': {', '.join(sorted(unknown))}"
        )
    return cls(**raw)


def parse_config(data: dict) -> ProcessConfig:
    """Parse config dictionary into ProcessConfig object."""
    config = ProcessConfig(
        policy=_section(data, "policy", PolicyConfig),
        batch=_section(data, "batch", BatchConfig),
        provider=_section(data, "provider", ProviderConfig),
        sweep=_section(data, "sweep", SweepConfig),
    )
    _validate(config)
    return config


def _validate(config: ProcessConfig) -> None:
    policy = config.policy
    for name in ("premium_reliability_threshold", "acceptance_threshold"):
        value = getattr(policy, name)
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"policy.{name} must be within [0, 1], got {value}")
    if policy.min_content_length < 0 or policy.max_content_chars <= 0:
        raise ConfigurationError("policy content lengths must be positive")

    batch = config.batch
    if not 1 <= batch.default_limit <= batch.max_limit:
        raise ConfigurationError("batch.default_limit must be within [1, batch.max_limit]")
    if batch.max_retries < 1:
        raise ConfigurationError("batch.max_retries must be at least 1")
    if batch.delay_seconds < 0:
        raise ConfigurationError("batch.delay_seconds must not be negative")

    if config.provider.max_attempts < 1:
        raise ConfigurationError("provider.max_attempts must be at least 1")


def load_config(config_name: str | None = None) -> ProcessConfig:
    """Load configuration from YAML file.

    Args:
        config_name: Name of config file (without .yaml extension) or a path.
                    If None, uses PROCESS_ARTICLES_CONFIG env var or "prod".
    """
    path = find_config_path(config_name, CONFIG_DIR, env_var="PROCESS_ARTICLES_CONFIG")
    return parse_config(load_yaml(path))


_manager = ConfigSingleton(load_config)
get_config = _manager.get
set_config = _manager.set
reset_config = _manager.reset
