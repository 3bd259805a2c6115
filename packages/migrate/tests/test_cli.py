"""Tests for the slingshot command line."""

import pytest
import yaml
from click.testing import CliRunner

from slingshot_migrate import __version__
from slingshot_migrate import cli as cli_module
from slingshot_migrate.cli import cli

CONFIG = {
    "hosts": {"source": "${SLINGSHOT_TEST_HOST:-http://localhost:9200}"},
    "migration": {
        "source": {"index": "source"},
        "target": {"index": "target"},
        "bulk": {"batch_size": 4},
        "aliases": ["live"],
    },
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Write a migration config; returns a function taking section overrides."""

    def write(**sections):
        data = {**CONFIG, **sections}
        path = tmp_path / "migration.yaml"
        path.write_text(yaml.safe_dump(data))
        return str(path)

    return write


@pytest.fixture
def wired_store(seeded_store, monkeypatch):
    """Make the CLI use the seeded memory store for both sides."""
    seen_hosts = []

    def connect(hosts):
        seen_hosts.append(hosts)
        return seeded_store, seeded_store

    monkeypatch.setattr(cli_module, "connect_stores", connect)
    seeded_store.seen_hosts = seen_hosts
    return seeded_store


class TestCli:
    """Test the CLI commands."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_run(self, runner, config_file, wired_store):
        """Test a run copies the documents and prints the statistics."""
        result = runner.invoke(cli, ["run", config_file()])

        assert result.exit_code == 0, result.output
        assert "Migration completed" in result.output
        assert "Migration statistics" in result.output
        assert wired_store.count("target") == 10
        assert wired_store.seen_hosts[0].source == "http://localhost:9200"

    def test_host_from_environment(self, runner, config_file, wired_store, monkeypatch):
        """Test ${VAR} references in the config file are resolved."""
        monkeypatch.setenv("SLINGSHOT_TEST_HOST", "http://es-prod:9200")
        result = runner.invoke(cli, ["-q", "run", config_file()])

        assert result.exit_code == 0, result.output
        assert wired_store.seen_hosts[0].source == "http://es-prod:9200"

    def test_run_with_transform_option(self, runner, config_file, wired_store):
        result = runner.invoke(
            cli, ["run", config_file(), "--transform", "slingshot_migrate.transforms:identity"]
        )
        assert result.exit_code == 0, result.output
        assert "slingshot_migrate.transforms:identity" in result.output

    def test_run_with_transform_from_config(self, runner, config_file, wired_store):
        result = runner.invoke(cli, ["run", config_file(transform="no_such_module:run")])

        assert result.exit_code == 1
        assert "cannot import module" in result.output
        assert wired_store.count("target") == 0

    def test_run_and_switch_aliases(self, runner, config_file, wired_store):
        wired_store.add_alias("source", "live")

        result = runner.invoke(cli, ["run", config_file(), "--switch-aliases"])

        assert result.exit_code == 0, result.output
        assert "Alias live: switched" in result.output
        assert wired_store.get_alias("live") == {"target"}

    def test_run_failure_exits_with_status_one(self, runner, config_file, wired_store):
        """Test a fatal error prints the partial statistics and exits 1."""
        migration = {**CONFIG["migration"], "target": {"index": "missing"}}
        result = runner.invoke(cli, ["run", config_file(migration=migration)])

        assert result.exit_code == 1
        assert "Target index 'missing' does not exist" in result.output
        assert "failed" in result.output

    def test_missing_section(self, runner, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text(yaml.safe_dump({"migration": CONFIG["migration"]}))

        result = runner.invoke(cli, ["run", str(path)])

        assert result.exit_code == 1
        assert "Configuration section not found: hosts" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["run", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2

    def test_switch_alias(self, runner, config_file, wired_store):
        wired_store.add_alias("source", "live")
        wired_store.add_alias("source", "extra")

        result = runner.invoke(cli, ["switch-alias", config_file(), "extra"])

        assert result.exit_code == 0, result.output
        assert "extra: switched" in result.output
        assert wired_store.get_alias("extra") == {"target"}
        assert wired_store.get_alias("live") == {"source"}

    def test_switch_configured_aliases(self, runner, config_file, wired_store):
        result = runner.invoke(cli, ["switch-alias", config_file()])

        assert result.exit_code == 0, result.output
        assert wired_store.get_alias("live") == {"target"}

    def test_switch_without_aliases(self, runner, config_file, wired_store):
        migration = {k: v for k, v in CONFIG["migration"].items() if k != "aliases"}
        result = runner.invoke(cli, ["switch-alias", config_file(migration=migration)])

        assert result.exit_code == 0
        assert "No aliases to switch" in result.output

    def test_reconcile_mapping(self, runner, config_file, wired_store):
        migration = {**CONFIG["migration"], "mappings": {"properties": {"n": {"type": "long"}}}}

        result = runner.invoke(cli, ["reconcile-mapping", config_file(migration=migration)])

        assert result.exit_code == 0, result.output
        assert "Mapping applied to target/_doc" in result.output
        assert wired_store.get_mapping("target", "_doc") == {"properties": {"n": {"type": "long"}}}
        assert wired_store.count("target") == 0

    def test_reconcile_nothing(self, runner, config_file, wired_store):
        result = runner.invoke(cli, ["reconcile-mapping", config_file()])
        assert result.exit_code == 0
        assert "No mapping changes required" in result.output

    def test_invalid_migration_section(self, runner, config_file, wired_store):
        result = runner.invoke(cli, ["run", config_file(migration={"source": {"index": "a"}})])

        assert result.exit_code == 1
        assert "target endpoint is required" in result.output
