import pytest

from trawler.cli import main


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write_config(workdir):
    config_path = workdir / "trawler.yaml"
    main(['config', '--create-default', '-o', str(config_path)])
    text = config_path.read_text().replace("data/trawler.db", str(workdir / "crawl.db"))
    config_path.write_text(text)
    return str(config_path)


def test_config_create_and_validate(workdir, capsys):
    config_path = write_config(workdir)

    main(['config', '--validate', config_path])

    assert "Configuration is valid" in capsys.readouterr().out


def test_seed_then_report(workdir, capsys):
    config_path = write_config(workdir)
    capsys.readouterr()

    main(['-c', config_path, 'seed', 'http://www.example.nz/', 'http://www.example.nz/',
          'http://shop.example.nz/a'])
    assert "Seeded 2 new URL(s) of 3" in capsys.readouterr().out

    main(['-c', config_path, 'report'])
    out = capsys.readouterr().out
    assert "Total URLs" in out
    assert "Total hosts" in out
    new_row = next(line for line in out.splitlines() if line.startswith("new"))
    assert new_row.split() == ["new", "2"]


def test_host_status_unknown_host_exits(workdir):
    config_path = write_config(workdir)

    with pytest.raises(SystemExit) as excinfo:
        main(['-c', config_path, 'host-status', 'nowhere.nz', 'excluded'])
    assert excinfo.value.code == 1


def test_bad_config_exits(workdir):
    (workdir / "bad.yaml").write_text("fetcher: {pages: {nope: 1}}\n")

    with pytest.raises(SystemExit) as excinfo:
        main(['-c', str(workdir / "bad.yaml"), 'report'])
    assert excinfo.value.code == 1


def test_host_status_help_says_which_status_survives_refresh(capsys):
    with pytest.raises(SystemExit):
        main(['host-status', '--help'])

    out = " ".join(capsys.readouterr().out.split())
    assert 'Only "excluded" survives the next robots.txt refresh' in out
