"""
Configuration Module - Configuration management and loading.

Components:
-----------
- TrawlerConfig: settings for every process role
- RoleConfig: host registry and frontier settings of one role
- ConfigLoader: loads and saves configurations from/to YAML files
- apply_init_mode: conservative settings for a cold first run
- validate_config: validates configuration objects
- ConfigurationError: exception raised for invalid configurations

Usage:
------
from trawler.config import ConfigLoader, validate_config

config = ConfigLoader.load_from_yaml('config/default.yaml')
validate_config(config)

Configuration File Format:
-------------------------
storage:
  database_path: data/trawler.db
fetcher:
  hosts:
    crawl_delay_seconds: 10.0
  pages:
    batch_size: 8
scraper:
  pages:
    max_pending_writes: 200
link_filter:
  domains:
    accept: ['.nz']
    reject: ['.google.']

Sections left out keep their defaults.
"""

from .trawler_config import (
    ConfigLoader,
    ConfigurationError,
    RoleConfig,
    TrawlerConfig,
    apply_init_mode,
    validate_config,
)

__all__ = [
    'ConfigLoader',
    'ConfigurationError',
    'RoleConfig',
    'TrawlerConfig',
    'apply_init_mode',
    'validate_config',
]
