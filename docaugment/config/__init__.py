"""Configuration module -- exports Settings and the YAML loader helpers."""

from docaugment.config.loader import load_config, provider_order
from docaugment.config.settings import Settings

__all__ = ["Settings", "load_config", "provider_order"]
