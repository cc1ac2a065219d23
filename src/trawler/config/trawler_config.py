"""
Trawler Configuration Management - Loading, saving and validating settings.
Settings are grouped per process role and loaded from YAML.
"""

import logging
import yaml
from typing import Any, Dict, Optional
from pathlib import Path
from dataclasses import asdict, dataclass, field, fields

from ..core.host_registry import HostRegistryConfig
from ..core.frontier import FrontierConfig
from ..core.link_filter import LinkFilterConfig, RuleSet
from ..storage.sqlite_store import StorageConfig
from ..workers.http_client import HttpClientConfig
from ..workers.page_fetcher import FetchConfig
from ..workers.host_fetcher import HostFetchConfig


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""
    pass


@dataclass
class RoleConfig:
    """Host registry and frontier settings for one process role."""
    hosts: HostRegistryConfig = field(default_factory=HostRegistryConfig)
    pages: FrontierConfig = field(default_factory=FrontierConfig)


DEFAULT_EXTENSIONS = RuleSet(
    accept=['html', 'htm', 'php', 'aspx', 'jsp'],
    reject=['js', 'css', 'jpg', 'png', 'jpeg', 'gif', 'pdf', 'doc',
            'docx', 'xls', 'xlsx', 'exe', 'deb', 'zip', 'gz', '7z', 'xml', 'rss',
            'wma', 'ogg', 'mp3', 'mp4', 'xvid', 'divx', 'avi', 'jsx',
            'jar', 'tiff', 'mpeg', 'ico'],
)

DEFAULT_DOMAINS = RuleSet(
    accept=['.nz', '.kiwi'],
    reject=['.instagram.', '.twitter.', '.facebook.', '.youtube.', '.google.', '.ebay.',
            '.amazon.', '.mozilla.', '.microsoft.', '.govt.', '.googleapis.', '.gstatic.',
            '.apple.', '.cloudflare.', '.android.', '.goo.gl', '.pinterest.', '.flickr.',
            '.tumblr.', '.seek.', '.youku.', '.urbandictionary.', '.gettyimages.',
            '.mightyape.', '.fishpond.', '.trademe.'],
)

DEFAULT_SCHEMES = RuleSet(accept=['http', 'https'])


@dataclass
class TrawlerConfig:
    """Complete configuration for all process roles."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    http: HttpClientConfig = field(default_factory=HttpClientConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    host_fetch: HostFetchConfig = field(default_factory=HostFetchConfig)
    fetcher: RoleConfig = field(default_factory=RoleConfig)
    scraper: RoleConfig = field(default_factory=RoleConfig)
    link_filter: LinkFilterConfig = field(default_factory=LinkFilterConfig)


def _build(cls, data: Optional[Dict[str, Any]], section: str, **nested):
    """Build a config dataclass from a mapping, rejecting unknown keys."""
    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(f"Section '{section}' must be a mapping")
    data = dict(data or {})

    names = {f.name for f in fields(cls)}
    unknown = set(data) - names
    if unknown:
        raise ConfigurationError(f"Unknown keys in '{section}': {', '.join(sorted(unknown))}")

    data.update(nested)
    return cls(**data)


class ConfigLoader:
    """Loads and saves trawler configuration as YAML."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def load_from_yaml(config_path: str) -> TrawlerConfig:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            TrawlerConfig object

        Raises:
            ConfigurationError: If configuration is invalid
        """
        logger = logging.getLogger(__name__)

        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(path, 'r') as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read {config_path}: {e}")

        if not config_dict:
            raise ConfigurationError(f"Empty configuration file: {config_path}")
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration must be a mapping: {config_path}")

        logger.info(f"Loaded configuration from {config_path}")

        try:
            return ConfigLoader.parse_config(config_dict)
        except ConfigurationError:
            raise
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Failed to parse configuration: {e}")

    @staticmethod
    def parse_config(config_dict: Dict[str, Any]) -> TrawlerConfig:
        """Parse a configuration dictionary, starting from the defaults."""
        defaults = ConfigLoader.create_default_config()

        def role(name: str, default: RoleConfig) -> RoleConfig:
            role_dict = config_dict.get(name) or {}
            hosts = {**asdict(default.hosts), **(role_dict.get('hosts') or {})}
            pages = {**asdict(default.pages), **(role_dict.get('pages') or {})}
            return RoleConfig(
                hosts=_build(HostRegistryConfig, hosts, f"{name}.hosts"),
                pages=_build(FrontierConfig, pages, f"{name}.pages"),
            )

        filter_dict = dict(config_dict.get('link_filter') or {})
        default_filter = defaults.link_filter
        link_filter = _build(
            LinkFilterConfig,
            {k: v for k, v in filter_dict.items() if k not in ('extensions', 'schemes', 'domains')},
            'link_filter',
            extensions=(RuleSet.from_dict(filter_dict['extensions'])
                        if 'extensions' in filter_dict else default_filter.extensions),
            schemes=(RuleSet.from_dict(filter_dict['schemes'])
                     if 'schemes' in filter_dict else default_filter.schemes),
            domains=(RuleSet.from_dict(filter_dict['domains'])
                     if 'domains' in filter_dict else default_filter.domains),
        )

        return TrawlerConfig(
            storage=_build(StorageConfig, config_dict.get('storage'), 'storage'),
            http=_build(HttpClientConfig, config_dict.get('http'), 'http'),
            fetch=_build(FetchConfig, config_dict.get('fetch'), 'fetch'),
            host_fetch=_build(HostFetchConfig, config_dict.get('host_fetch'), 'host_fetch'),
            fetcher=role('fetcher', defaults.fetcher),
            scraper=role('scraper', defaults.scraper),
            link_filter=link_filter,
        )

    @staticmethod
    def save_to_yaml(config: TrawlerConfig, output_path: str):
        """Save configuration to YAML file."""
        logger = logging.getLogger(__name__)

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(path, 'w') as f:
                yaml.safe_dump(asdict(config), f, default_flow_style=False, indent=2, sort_keys=False)
            logger.info(f"Configuration saved to {output_path}")
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}")

    @staticmethod
    def create_default_config() -> TrawlerConfig:
        """Create a default configuration."""
        return TrawlerConfig(
            fetcher=RoleConfig(
                hosts=HostRegistryConfig(crawl_delay_seconds=10.0),
                pages=FrontierConfig(max_known_urls=0),
            ),
            scraper=RoleConfig(
                hosts=HostRegistryConfig(crawl_delay_seconds=20.0),
                pages=FrontierConfig(batch_size=1, max_pending_writes=200,
                                     max_known_urls=200000, preload_known_urls=True),
            ),
            link_filter=LinkFilterConfig(
                extensions=RuleSet(list(DEFAULT_EXTENSIONS.accept), list(DEFAULT_EXTENSIONS.reject)),
                schemes=RuleSet(list(DEFAULT_SCHEMES.accept), list(DEFAULT_SCHEMES.reject)),
                domains=RuleSet(list(DEFAULT_DOMAINS.accept), list(DEFAULT_DOMAINS.reject)),
            ),
        )


def apply_init_mode(config: TrawlerConfig) -> TrawlerConfig:
    """
    Make a cold first run conservative: batch sizes and pending writes of 1,
    and no known-URL preloading.
    """
    for role in (config.fetcher, config.scraper):
        role.hosts.batch_size = 1
        role.pages.batch_size = 1
        role.pages.max_pending_writes = 1
        role.pages.preload_known_urls = False
    logging.getLogger(__name__).info("Init mode: batch sizes set to 1, preloading disabled")
    return config


def validate_config(config: TrawlerConfig) -> bool:
    """Validate trawler configuration."""
    logger = logging.getLogger(__name__)

    for name, role in (('fetcher', config.fetcher), ('scraper', config.scraper)):
        hosts, pages = role.hosts, role.pages
        if hosts.batch_size < 1:
            raise ConfigurationError(f"{name}.hosts.batch_size must be at least 1")
        if hosts.crawl_delay_seconds < 0:
            raise ConfigurationError(f"{name}.hosts.crawl_delay_seconds cannot be negative")
        if hosts.host_refresh_period_seconds <= 0:
            raise ConfigurationError(f"{name}.hosts.host_refresh_period_seconds must be positive")
        if hosts.max_known_hosts < 0:
            raise ConfigurationError(f"{name}.hosts.max_known_hosts cannot be negative")
        if pages.batch_size < 1:
            raise ConfigurationError(f"{name}.pages.batch_size must be at least 1")
        if pages.max_batch_size < pages.batch_size:
            raise ConfigurationError(f"{name}.pages.max_batch_size cannot be below batch_size")
        if pages.crawl_delay_seconds < 0:
            raise ConfigurationError(f"{name}.pages.crawl_delay_seconds cannot be negative")
        if pages.max_pending_writes < 1:
            raise ConfigurationError(f"{name}.pages.max_pending_writes must be at least 1")
        if pages.max_known_urls < 0:
            raise ConfigurationError(f"{name}.pages.max_known_urls cannot be negative")

    if not config.storage.database_path:
        raise ConfigurationError("storage.database_path is required")

    if config.http.timeout_seconds <= 0 or config.fetch.timeout_seconds <= 0:
        raise ConfigurationError("timeouts must be positive")

    if config.host_fetch.timeout_seconds <= 0:
        raise ConfigurationError("host_fetch.timeout_seconds must be positive")

    if not config.host_fetch.schemes:
        raise ConfigurationError("host_fetch.schemes cannot be empty")

    if config.fetch.max_attempts < 1:
        raise ConfigurationError("fetch.max_attempts must be at least 1")

    if config.link_filter.max_cached_domains < 0:
        raise ConfigurationError("link_filter.max_cached_domains cannot be negative")

    logger.info("Configuration validated successfully")
    return True
