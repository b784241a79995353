"""
Tests for automodsync.cli module.

The sync command is exercised with sync_from_file patched out, so no
repository or Azure calls are made.
"""

from __future__ import annotations

import pytest

from automodsync import cli
from automodsync.automation.base import ProvisioningState
from automodsync.exceptions import AccountNotFoundError
from automodsync.policy import Action
from automodsync.results import SyncResult, TargetResult


def _target(status: str, action: Action | None = Action.IMPORT, error: str | None = None):
    return TargetResult(
        deployment="az-accounts",
        account="aa-prod-01",
        module_name="Az.Accounts",
        source_version="2.12.1",
        target_version=None,
        action=action,
        final_state=ProvisioningState.SUCCEEDED if status == "imported" else None,
        status=status,
        error=error,
    )


def _exit_code(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    return exc_info.value.code


class TestValidateCommand:
    """Tests for 'amsync validate'."""

    def test_valid_file(self, create_yaml_file, sample_deployment_data, capsys):
        path = create_yaml_file("deployments.yaml", sample_deployment_data)

        assert _exit_code(["validate", str(path)]) == 0
        assert "[SUCCESS]" in capsys.readouterr().out

    def test_invalid_file(self, create_yaml_file, capsys):
        path = create_yaml_file("deployments.yaml", {"apiVersion": "amsync/v1"})

        assert _exit_code(["validate", str(path)]) == 1
        out = capsys.readouterr().out
        assert "INVALID" in out
        assert "deployments" in out


class TestSyncCommand:
    """Tests for 'amsync sync'."""

    @pytest.fixture
    def deployment_file(self, create_yaml_file, sample_deployment_data):
        return create_yaml_file("deployments.yaml", sample_deployment_data)

    def test_success(self, deployment_file, monkeypatch, capsys):
        captured = {}

        def fake_sync(path, **kwargs):
            captured.update(kwargs)
            return SyncResult(targets=(_target("imported"),))

        monkeypatch.setattr(cli, "sync_from_file", fake_sync)

        assert _exit_code(["sync", str(deployment_file), "--continue-on-error"]) == 0
        assert captured["on_error"] == "continue"
        assert captured["force"] is None
        assert captured["poll"].interval == 5.0
        assert "[SUCCESS]" in capsys.readouterr().out

    def test_options_are_passed(self, deployment_file, monkeypatch):
        captured = {}

        def fake_sync(path, **kwargs):
            captured.update(kwargs)
            return SyncResult(targets=(), dry_run=True)

        monkeypatch.setattr(cli, "sync_from_file", fake_sync)

        argv = [
            "sync",
            str(deployment_file),
            "--force",
            "--dry-run",
            "--subscription",
            "sub-1",
            "--poll-interval",
            "2",
            "--poll-timeout",
            "60",
            "--fail-on-failed-import",
        ]
        assert _exit_code(argv) == 0
        assert captured["force"] is True
        assert captured["dry_run"] is True
        assert captured["subscription_id"] == "sub-1"
        assert captured["on_error"] == "abort"
        assert captured["fail_on_failed_import"] is True
        assert captured["poll"].interval == 2.0
        assert captured["poll"].timeout == 60.0

    def test_failed_target_exits_nonzero(self, deployment_file, monkeypatch, capsys):
        result = SyncResult(
            targets=(_target("error", action=None, error="account missing"),)
        )
        monkeypatch.setattr(cli, "sync_from_file", lambda path, **kwargs: result)

        assert _exit_code(["sync", str(deployment_file)]) == 1
        out = capsys.readouterr().out
        assert "account missing" in out
        assert "[FAILED]" in out

    def test_error_is_printed(self, deployment_file, monkeypatch, capsys):
        def fake_sync(path, **kwargs):
            raise AccountNotFoundError("aa-prod-01", "rg-automation")

        monkeypatch.setattr(cli, "sync_from_file", fake_sync)

        assert _exit_code(["sync", str(deployment_file)]) == 1
        assert "Error: Automation account 'aa-prod-01'" in capsys.readouterr().out

    def test_missing_file(self, tmp_test_dir, capsys):
        assert _exit_code(["sync", str(tmp_test_dir / "missing.yaml")]) == 1
        assert "not found" in capsys.readouterr().out
