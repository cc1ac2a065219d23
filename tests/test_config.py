import pytest
import yaml

from trawler.config import (
    ConfigLoader,
    ConfigurationError,
    apply_init_mode,
    validate_config,
)


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_default_config_is_valid():
    config = ConfigLoader.create_default_config()

    assert validate_config(config)
    assert config.fetcher.pages.max_known_urls == 0
    assert config.scraper.pages.preload_known_urls
    assert config.scraper.hosts.crawl_delay_seconds == 20.0
    assert '.nz' in config.link_filter.domains.accept


def test_save_and_load(tmp_path):
    config = ConfigLoader.create_default_config()
    config.storage.database_path = str(tmp_path / "crawl.db")
    config.scraper.pages.max_pending_writes = 50
    path = tmp_path / "nested" / "trawler.yaml"

    ConfigLoader.save_to_yaml(config, str(path))
    loaded = ConfigLoader.load_from_yaml(str(path))

    assert loaded == config


def test_partial_file_keeps_defaults(tmp_path):
    path = write_yaml(tmp_path / "partial.yaml", {
        'storage': {'database_path': 'crawl.db'},
        'scraper': {'pages': {'batch_size': 4}},
        'link_filter': {'domains': {'accept': ['.kiwi']}},
    })

    config = ConfigLoader.load_from_yaml(path)

    assert config.storage.database_path == 'crawl.db'
    assert config.scraper.pages.batch_size == 4
    assert config.scraper.pages.max_pending_writes == 200
    assert config.scraper.hosts.crawl_delay_seconds == 20.0
    assert config.fetcher.hosts.crawl_delay_seconds == 10.0
    assert config.link_filter.domains.accept == ['.kiwi']
    assert config.link_filter.domains.reject == []
    assert 'css' in config.link_filter.extensions.reject


def test_unknown_key_is_rejected(tmp_path):
    path = write_yaml(tmp_path / "typo.yaml", {'fetcher': {'pages': {'batchsize': 4}}})

    with pytest.raises(ConfigurationError, match="batchsize"):
        ConfigLoader.load_from_yaml(path)


def test_section_must_be_a_mapping(tmp_path):
    path = write_yaml(tmp_path / "bad.yaml", {'http': ['timeout_seconds']})

    with pytest.raises(ConfigurationError, match="http"):
        ConfigLoader.load_from_yaml(path)


def test_missing_and_empty_files(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        ConfigLoader.load_from_yaml(str(tmp_path / "absent.yaml"))

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    with pytest.raises(ConfigurationError, match="Empty"):
        ConfigLoader.load_from_yaml(str(empty))


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("storage: [unclosed")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        ConfigLoader.load_from_yaml(str(path))


def test_init_mode():
    config = apply_init_mode(ConfigLoader.create_default_config())

    for role in (config.fetcher, config.scraper):
        assert role.hosts.batch_size == 1
        assert role.pages.batch_size == 1
        assert role.pages.max_pending_writes == 1
        assert not role.pages.preload_known_urls
    assert validate_config(config)


@pytest.mark.parametrize("change, message", [
    (lambda c: setattr(c.fetcher.pages, 'batch_size', 0), "batch_size"),
    (lambda c: setattr(c.scraper.pages, 'max_batch_size', 0), "max_batch_size"),
    (lambda c: setattr(c.scraper.hosts, 'crawl_delay_seconds', -1), "crawl_delay_seconds"),
    (lambda c: setattr(c.fetch, 'max_attempts', 0), "max_attempts"),
    (lambda c: setattr(c.host_fetch, 'schemes', []), "schemes"),
    (lambda c: setattr(c.storage, 'database_path', ''), "database_path"),
])
def test_validation_errors(change, message):
    config = ConfigLoader.create_default_config()
    change(config)

    with pytest.raises(ConfigurationError, match=message):
        validate_config(config)
