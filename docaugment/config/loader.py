"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static defaults checked into the repo
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

The YAML file owns the per-capability provider order; Settings owns
credentials and tunables.  :func:`provider_order` resolves the final
ordered list for one capability.
"""

from pathlib import Path

import yaml

from docaugment.config.settings import Settings
from docaugment.utils.errors import ConfigurationError

CAPABILITIES = ("summarize", "chat", "keywords", "embed")

_DEFAULT_ORDER: dict[str, list[str]] = {
    "summarize": ["ollama", "openai", "anthropic"],
    "chat": ["ollama", "openai", "anthropic"],
    "keywords": ["ollama", "openai", "anthropic"],
    "embed": ["openai", "nomic"],
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings instance to merge; a fresh one is built when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    if not isinstance(yaml_config, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "env": settings.app_env,
        },
        "providers": {
            "available_llm": settings.get_available_llm_providers(),
            "available_embedding": settings.get_available_embedding_providers(),
        },
        "chunking": {
            "chunk_size": settings.chunk_size,
            "embedding_concurrency": settings.embedding_concurrency,
        },
        "search": {
            "max_distance": settings.search_max_distance,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def provider_order(config: dict, capability: str) -> list[str]:
    """Return the configured provider names for *capability*, in priority order.

    Names that are not in the matching ``available_*`` list are dropped, so
    a provider without credentials never enters a fallback chain.
    """
    if capability not in CAPABILITIES:
        raise ConfigurationError(f"Unknown capability '{capability}'")

    providers = config.get("providers", {})
    order = providers.get("order", {}).get(capability) or _DEFAULT_ORDER[capability]
    if capability == "embed":
        available = providers.get("available_embedding", [])
    else:
        available = providers.get("available_llm", [])

    resolved: list[str] = []
    for name in order:
        if name in available and name not in resolved:
            resolved.append(name)
    return resolved


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
