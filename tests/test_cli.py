import pytest
import toml
from click.testing import CliRunner

from logwatch import cli, config
from logwatch.dispatcher import EventDispatcher

from conftest import FakeINotify


@pytest.fixture
def quiet_config(tmp_path, monkeypatch):
    config_dir = tmp_path / "conf"
    config_dir.mkdir()
    with open(config_dir / "config.toml", "w") as f:
        toml.dump({"display": {"banner": False, "status": False}}, f)
    monkeypatch.setenv(config.ENV_CONFIG_DIR_VAR, str(config_dir))
    return config_dir


@pytest.fixture
def fake_facility(monkeypatch):
    """Replace INotify in the CLI and stop the loop as soon as it starts."""
    instances = []

    def factory():
        inotify = FakeINotify()
        instances.append(inotify)
        return inotify

    original_run = EventDispatcher.run

    def run_then_stop(self):
        self.stop()
        original_run(self)

    monkeypatch.setattr(cli, "INotify", factory)
    monkeypatch.setattr(EventDispatcher, "run", run_then_stop)
    yield instances
    for inotify in instances:
        inotify.close()


def test_help():
    runner = CliRunner()
    result = runner.invoke(cli.main, ["--help"])
    assert result.exit_code == 0
    assert "Usage" in result.output
    assert "DIRECTORY" in result.output


def test_missing_directory_is_usage_error(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli.main, [str(tmp_path / "missing")])
    assert result.exit_code == 2


def test_inotify_init_failure_exits_nonzero(tmp_path, quiet_config, monkeypatch):
    def broken():
        raise OSError(24, "Too many open files")

    monkeypatch.setattr(cli, "INotify", broken)
    runner = CliRunner()
    result = runner.invoke(cli.main, [str(tmp_path)])
    assert result.exit_code == 1


def test_run_and_shutdown_releases_every_watch(tmp_path, quiet_config, fake_facility, monkeypatch):
    tree = tmp_path / "tree"
    (tree / "a" / "b").mkdir(parents=True)
    monkeypatch.chdir(tmp_path)

    runner = CliRunner()
    result = runner.invoke(cli.main, [str(tree)])

    assert result.exit_code == 0, result.output
    assert "monitoring" in result.output
    assert "Stopping log watcher..." in result.output

    inotify = fake_facility[0]
    watched = [path for path, _ in inotify.added]
    assert watched == [str(tree), str(tree / "a"), str(tree / "a" / "b")]
    assert sorted(inotify.removed) == [1, 2, 3]
    assert inotify.watches == {}
    assert inotify.closed


def test_default_directory_is_cwd(tmp_path, quiet_config, fake_facility, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli.main, [])

    assert result.exit_code == 0, result.output
    assert fake_facility[0].added[0][0] == str(tmp_path)


def test_status_and_banner_printed_by_default(tmp_path, fake_facility, monkeypatch):
    monkeypatch.delenv(config.ENV_CONFIG_DIR_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli.main, [str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "LogWatch Status" in result.output
    assert "Watches" in result.output
