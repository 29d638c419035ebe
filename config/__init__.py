"""Unified configuration package."""

from pydantic import ValidationError

from core.errors import ConfigError
from core.models import PipelineConfig

from .constants import *  # noqa: F401,F403
from .storage import load_config, save_config

config = DEFAULT_CONFIG.copy()


def set_config(cfg: dict) -> None:
    """Replace the global configuration with ``cfg`` over the defaults."""

    config.clear()
    config.update(DEFAULT_CONFIG)
    config.update(cfg)


def pipeline_config(cfg: dict | None = None) -> PipelineConfig:
    """Return validated pipeline options from ``cfg`` or the global config."""

    source = config if cfg is None else {**DEFAULT_CONFIG, **cfg}
    fields = {k: v for k, v in source.items() if k in PipelineConfig.model_fields}
    try:
        return PipelineConfig(**fields)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


__all__ = [
    "load_config",
    "save_config",
    "set_config",
    "pipeline_config",
    "config",
] + [name for name in globals().keys() if name.isupper()]
