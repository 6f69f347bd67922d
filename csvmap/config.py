"""
Optional YAML configuration for pipeline runs.

Example:

    fields:
      lat_field: Latitude
      lon_field: Longitude
    timeline:
      enabled: true
      start_year: 1900
      end_year: 1950
      day_filter_enabled: true
      start_day: 350
      end_day: 10
    limits:
      max_files: 20

Every section is optional. Command-line flags override file values.
"""

import logging
from dataclasses import dataclass, field, fields as dataclass_fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from csvmap.constants import MAX_FILES
from csvmap.timeline import DOMAIN_AUTO, DOMAIN_MANUAL, TimelineConfig, with_day_range

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Configuration file is unreadable or malformed."""


@dataclass
class PipelineConfig:
    lat_field: Optional[str] = None
    lon_field: Optional[str] = None
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    max_files: int = MAX_FILES


_TIMELINE_KEYS = {f.name for f in dataclass_fields(TimelineConfig)}


def _section(config: Dict, name: str) -> Dict:
    value = config.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    return value


def parse_config(config: Dict[str, Any]) -> PipelineConfig:
    """
    Build a PipelineConfig from a loaded mapping.

    Raises:
        ConfigError: Unknown timeline keys, bad types or bad domain mode
    """
    if config is None:
        return PipelineConfig()
    if not isinstance(config, dict):
        raise ConfigError("Configuration must be a mapping")

    fields_section = _section(config, 'fields')
    timeline_section = _section(config, 'timeline')
    limits_section = _section(config, 'limits')

    unknown = set(timeline_section) - _TIMELINE_KEYS
    if unknown:
        raise ConfigError(f"Unknown timeline keys: {', '.join(sorted(unknown))}")

    mode = timeline_section.get('year_domain_mode', DOMAIN_AUTO)
    if mode not in (DOMAIN_AUTO, DOMAIN_MANUAL):
        raise ConfigError(f"year_domain_mode must be '{DOMAIN_AUTO}' or '{DOMAIN_MANUAL}'")

    try:
        timeline = TimelineConfig(**timeline_section)
    except TypeError as e:
        raise ConfigError(f"Invalid timeline section: {e}") from e
    timeline = with_day_range(timeline, timeline.start_day, timeline.end_day)

    max_files = limits_section.get('max_files', MAX_FILES)
    if not isinstance(max_files, int) or max_files < 1:
        raise ConfigError("limits.max_files must be a positive integer")

    return PipelineConfig(
        lat_field=fields_section.get('lat_field'),
        lon_field=fields_section.get('lon_field'),
        timeline=timeline,
        max_files=max_files,
    )


def load_config(config_path: Union[str, Path]) -> PipelineConfig:
    """Load configuration from YAML file."""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Could not read config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    logger.debug(f"Loaded config from {config_path}")
    return parse_config(raw)
