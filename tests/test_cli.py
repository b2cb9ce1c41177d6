"""Tests for the forumops CLI."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from forumops import __version__
from forumops.cli import DEFAULT_CONFIG, app, resolve_config_path
from forumops.config import load_config
from forumops.monitoring import Alert, MonitoringUnavailableError
from forumops.probes import ProbeResult
from tests.conftest import VALID_UUID

runner = CliRunner()


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """A working directory containing ./forumops.yaml."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / DEFAULT_CONFIG).write_text(
        "name: test\n"
        "app:\n"
        "  base_url: http://forum.test:3000\n"
        "backup:\n"
        "  directory: backups\n"
        "  keep: 2\n"
    )
    return tmp_path


class TestResolveConfigPath:
    """Tests for config file auto-discovery."""

    def test_explicit_path_returned(self, tmp_path):
        """Explicit path is returned as-is, even if it doesn't exist."""
        p = tmp_path / "custom.yaml"
        assert resolve_config_path(p) == p

    def test_file_option_wins(self, tmp_path):
        a, b = tmp_path / "a.yaml", tmp_path / "b.yaml"
        assert resolve_config_path(a, b) == b

    def test_none_finds_default(self, project_dir):
        assert resolve_config_path(None) == Path(DEFAULT_CONFIG)

    def test_none_exits_when_missing(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(typer.Exit):
            resolve_config_path(None)

    def test_default_config_constant(self):
        assert DEFAULT_CONFIG == "forumops.yaml"


class TestBasicCommands:
    """Tests for version / init / info."""

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_init_creates_config(self, tmp_path):
        out = tmp_path / "forumops.yaml"
        result = runner.invoke(
            app, ["init", "-o", str(out), "--name", "prod-forum", "--app-url", "https://f.io/"]
        )
        assert result.exit_code == 0
        text = out.read_text()
        assert "name: prod-forum" in text
        assert "base_url: https://f.io" in text

    def test_init_refuses_overwrite(self, tmp_path):
        out = tmp_path / "forumops.yaml"
        out.write_text("name: keep\n")
        result = runner.invoke(app, ["init", "-o", str(out)])
        assert result.exit_code == 1
        assert out.read_text() == "name: keep\n"

    def test_init_force(self, tmp_path):
        out = tmp_path / "forumops.yaml"
        out.write_text("name: keep\n")
        result = runner.invoke(app, ["init", "-o", str(out), "--force"])
        assert result.exit_code == 0
        assert "name: forum-monitoring" in out.read_text()

    def test_init_quotes_yaml_special_characters(self, tmp_path):
        out = tmp_path / "forumops.yaml"
        result = runner.invoke(app, ["init", "-o", str(out), "--name", "forum: prod"])
        assert result.exit_code == 0
        assert load_config(out).name == "forum: prod"

    def test_init_name_starting_with_hash(self, tmp_path):
        out = tmp_path / "forumops.yaml"
        result = runner.invoke(app, ["init", "-o", str(out), "--name", "#forum"])
        assert result.exit_code == 0
        assert load_config(out).name == "#forum"

    def test_init_rejects_invalid_app_url(self, tmp_path):
        out = tmp_path / "forumops.yaml"
        result = runner.invoke(app, ["init", "-o", str(out), "--app-url", "forum.test"])
        assert result.exit_code == 1
        assert "app.base_url" in result.output
        assert not out.exists()

    def test_info(self, project_dir):
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "http://forum.test:3000" in result.output

    def test_missing_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 1
        assert "forumops init" in result.output

    def test_invalid_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / DEFAULT_CONFIG).write_text("name: x\nhttp:\n  timeout: -1\n")
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 1
        assert "http.timeout" in result.output

    def test_validate_missing_compose_file(self, project_dir):
        with patch("forumops.cli.shutil.which", return_value="/usr/bin/tool"):
            result = runner.invoke(app, ["validate"])
        assert result.exit_code == 1
        assert "Compose file not found" in result.output


class TestValidateTopic:
    """Tests for the validate-topic command."""

    def test_valid_payload(self, tmp_path):
        path = tmp_path / "topic.json"
        path.write_text(json.dumps({"title": "Hello", "categoryId": VALID_UUID}))
        result = runner.invoke(app, ["validate-topic", str(path)])
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_rejected_payload(self, tmp_path):
        path = tmp_path / "topic.json"
        path.write_text(json.dumps({"title": "", "categoryId": "nope"}))
        result = runner.invoke(app, ["validate-topic", str(path)])
        assert result.exit_code == 1
        assert "title" in result.output
        assert "categoryId" in result.output

    def test_stdin(self):
        payload = json.dumps({"title": "Hello", "categoryId": VALID_UUID, "isPinned": "yes"})
        result = runner.invoke(app, ["validate-topic", "-"], input=payload)
        assert result.exit_code == 1
        assert "isPinned" in result.output

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "topic.json"
        path.write_text("{")
        result = runner.invoke(app, ["validate-topic", str(path), "--quiet"])
        assert result.exit_code == 1
        assert result.output == ""

    def test_missing_argument(self):
        result = runner.invoke(app, ["validate-topic"])
        assert result.exit_code != 0


class TestHealthCommand:
    """Tests for the health command."""

    def _results(self, ready_ok: bool) -> list[ProbeResult]:
        base = "http://forum.test:3000"
        return [
            ProbeResult("health", f"{base}/health", True, 200, 3.0),
            ProbeResult("liveness", f"{base}/health/live", True, 200, 2.0),
            ProbeResult(
                "readiness",
                f"{base}/health/ready",
                ready_ok,
                200 if ready_ok else 503,
                4.0,
            ),
        ]

    def _invoke(self, results, args):
        with patch("forumops.cli.HealthProber") as prober_cls:
            prober = prober_cls.return_value.__enter__.return_value
            prober.probe_app.return_value = results
            prober.probe_stack.return_value = []
            return runner.invoke(app, ["health", "--app-only", *args])

    def test_all_healthy(self, project_dir):
        result = self._invoke(self._results(True), [])
        assert result.exit_code == 0
        assert "not responding" not in result.output

    def test_failure_prints_fallback(self, project_dir):
        result = self._invoke(self._results(False), [])
        assert result.exit_code == 0
        assert "readiness is not responding" in result.output

    def test_strict_exits_1(self, project_dir):
        result = self._invoke(self._results(False), ["--strict"])
        assert result.exit_code == 1


class TestStackCommands:
    """Tests for up / down with compose mocked."""

    def test_up_reports_failure(self, project_dir, mock_subprocess):
        mock_subprocess.return_value = MagicMock(
            returncode=1, stdout="", stderr="port is already allocated"
        )
        result = runner.invoke(app, ["up"])
        assert result.exit_code == 1
        assert "port is already allocated" in result.output

    def test_up_wait_ready(self, project_dir, mock_subprocess):
        with patch("forumops.cli.HealthProber") as prober_cls:
            prober = prober_cls.return_value.__enter__.return_value
            prober.probe_ready.return_value = ProbeResult(
                "readiness", "http://forum.test:3000/health/ready", True, 200, 1.0
            )
            result = runner.invoke(app, ["up", "--wait"])
        assert result.exit_code == 0
        assert "Service ready" in result.output

    def test_down_volumes(self, project_dir, mock_subprocess):
        result = runner.invoke(app, ["down", "--volumes", "--yes"])
        assert result.exit_code == 0
        assert mock_subprocess.call_args[0][0][-2:] == ["down", "--volumes"]


class TestMonitoringCommands:
    """Tests for commands backed by the monitoring clients."""

    def test_alerts_table(self, project_dir):
        client = MagicMock()
        client.__enter__.return_value = client
        client.alerts.return_value = [
            Alert(name="ServiceDown", state="firing", labels={"severity": "critical"})
        ]
        with patch("forumops.cli._prometheus", return_value=client):
            result = runner.invoke(app, ["alerts"])
        assert result.exit_code == 0
        assert "ServiceDown" in result.output

    def test_alerts_unreachable(self, project_dir):
        client = MagicMock()
        client.__enter__.return_value = client
        client.alerts.side_effect = MonitoringUnavailableError(
            "Prometheus", "http://localhost:9090", "ConnectError"
        )
        with patch("forumops.cli._prometheus", return_value=client):
            result = runner.invoke(app, ["alerts"])
        assert result.exit_code == 1
        assert "Prometheus is not responding" in result.output

    def test_reload_rejects_unknown_target(self, project_dir):
        result = runner.invoke(app, ["reload", "--target", "grafana"])
        assert result.exit_code == 1


class TestBackupCommands:
    """Tests for backup / backups / restore."""

    def _make_monitoring_dir(self, root):
        prom = root / "monitoring" / "prometheus"
        prom.mkdir(parents=True)
        (prom / "prometheus.yml").write_text("global: {}\n")

    def test_backup_then_list(self, project_dir):
        self._make_monitoring_dir(project_dir)
        result = runner.invoke(app, ["backup"])
        assert result.exit_code == 0
        assert "Backup created" in result.output
        assert len(list((project_dir / "backups").glob("monitoring-backup-*.tar.gz"))) == 1

        result = runner.invoke(app, ["backups"])
        assert result.exit_code == 0
        assert "monitoring-backup-" in result.output

    def test_backup_nothing_to_back_up(self, project_dir):
        result = runner.invoke(app, ["backup"])
        assert result.exit_code == 1
        assert "Nothing to back up" in result.output

    def test_restore_without_argument(self, project_dir):
        result = runner.invoke(app, ["restore"])
        # Usage error from typer, not a command failure
        assert result.exit_code == 2

    def test_restore_missing_archive(self, project_dir):
        result = runner.invoke(app, ["restore", "backups/nope.tar.gz", "--yes"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_restore_round_trip(self, project_dir):
        self._make_monitoring_dir(project_dir)
        assert runner.invoke(app, ["backup"]).exit_code == 0
        archive = next((project_dir / "backups").glob("*.tar.gz"))
        prom = project_dir / "monitoring" / "prometheus" / "prometheus.yml"
        prom.write_text("changed\n")

        result = runner.invoke(app, ["restore", str(archive), "--yes"])
        assert result.exit_code == 0
        assert prom.read_text() == "global: {}\n"


class TestLoadtestCommand:
    """Tests for the loadtest command."""

    def test_unknown_profile(self, project_dir):
        result = runner.invoke(app, ["loadtest", "--profile", "extreme"])
        assert result.exit_code == 1
        assert "Unknown load profile" in result.output

    def test_zero_requests_not_replaced_by_profile(self, project_dir, mock_subprocess):
        result = runner.invoke(app, ["loadtest", "-n", "0"])
        assert result.exit_code == 1
        assert "must be at least 1" in result.output
        mock_subprocess.assert_not_called()

    def test_profile_override(self, project_dir):
        with patch("forumops.cli.run_load_test") as run:
            run.side_effect = RuntimeError("stop")
            runner.invoke(app, ["loadtest", "-p", "medium", "-c", "5"])
        args, kwargs = run.call_args
        assert args[0] == "http://forum.test:3000/health"
        assert kwargs["requests"] == 1000
        assert kwargs["concurrency"] == 5
