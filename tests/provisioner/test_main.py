# tests/provisioner/test_main.py
# -*- coding: utf-8 -*-
import subprocess
from unittest.mock import MagicMock

import pytest

from provisioner.exceptions import (
    PrivilegeError,
    ServiceActivationError,
    UnsupportedHostError,
)
from provisioner.main import main, parse_args
from provisioner.pipeline import Pipeline, StageOutcome, StageStatus


@pytest.fixture(autouse=True)
def host(mocker):
    """Stand in for everything main touches outside the pipeline."""
    return {
        "setup_logging": mocker.patch("provisioner.main.setup_logging"),
        "check_root": mocker.patch("provisioner.main.check_root"),
        "check_host_os": mocker.patch("provisioner.main.check_host_os"),
        "public_ip": mocker.patch(
            "provisioner.main.get_public_ip_address",
            return_value="203.0.113.7",
        ),
        "final_info": mocker.patch("provisioner.main.display_final_info"),
    }


@pytest.fixture
def argv(tmp_path):
    return ["--config", str(tmp_path / "absent.yaml")]


def _factory(calls, failing=None, error=None, degraded=()):
    """Build a pipeline factory whose stages only record that they ran."""

    def factory(app_settings, logger):
        pipeline = Pipeline(app_settings, logger)
        for name in ("packages", "runtime", "firewall", "activation"):

            def stage(settings, stage_logger, name=name):
                calls.append(name)
                if name == failing:
                    raise error
                status = (
                    StageStatus.DEGRADED
                    if name in degraded
                    else StageStatus.APPLIED
                )
                return StageOutcome(name=name, status=status)

            pipeline.add_stage(name, name, stage)
        return pipeline

    return factory


def test_parse_args_overrides():
    args = parse_args(["-y", "--port", "8080", "--node-version", "20"])

    assert args.yes is True
    assert args.port == 8080
    assert args.node_version == 20
    assert args.config == "config.yaml"
    assert args.user is None


def test_successful_run(host, argv):
    calls = []
    confirm = MagicMock(return_value=True)

    assert main(argv, confirm=confirm, pipeline_factory=_factory(calls)) == 0

    assert calls == ["packages", "runtime", "firewall", "activation"]
    confirm.assert_called_once_with("Do you want to continue?")
    host["final_info"].assert_called_once()
    outcomes = host["final_info"].call_args.args[1]
    assert [o.name for o in outcomes] == calls
    assert host["final_info"].call_args.args[2] == "203.0.113.7"


def test_declined_confirmation_runs_nothing(host, argv):
    calls = []

    result = main(
        argv,
        confirm=MagicMock(return_value=False),
        pipeline_factory=_factory(calls),
    )

    assert result == 0
    assert calls == []
    host["public_ip"].assert_not_called()


def test_yes_flag_skips_prompt(mocker, host, argv):
    mock_input = mocker.patch("builtins.input")
    calls = []

    assert main(argv + ["--yes"], pipeline_factory=_factory(calls)) == 0

    mock_input.assert_not_called()
    assert calls[-1] == "activation"


def test_not_root_exits_non_zero(host, argv):
    host["check_root"].side_effect = PrivilegeError(
        "This script must be run as root or with sudo"
    )
    calls = []

    result = main(
        argv, confirm=MagicMock(return_value=True), pipeline_factory=_factory(calls)
    )

    assert result == 1
    assert calls == []


def test_unsupported_host_exits_non_zero(host, argv):
    host["check_host_os"].side_effect = UnsupportedHostError(
        "Cannot determine OS version"
    )

    result = main(
        argv, confirm=MagicMock(return_value=True), pipeline_factory=_factory([])
    )

    assert result == 1


def test_stage_failure_halts_run(host, argv):
    calls = []
    error = subprocess.CalledProcessError(1, ["npm", "install", "-g", "n8n"])

    result = main(
        argv,
        confirm=MagicMock(return_value=True),
        pipeline_factory=_factory(calls, failing="runtime", error=error),
    )

    assert result == 1
    assert calls == ["packages", "runtime"]
    host["final_info"].assert_not_called()


def test_activation_failure_reports_diagnostics(mocker, host, argv):
    mock_log = mocker.patch("provisioner.main.log_provisioner")
    error = ServiceActivationError(
        "n8n is not active",
        stage="activation",
        diagnostics="Active: failed (Result: exit-code)",
    )

    result = main(
        argv,
        confirm=MagicMock(return_value=True),
        pipeline_factory=_factory([], failing="activation", error=error),
    )

    assert result == 1
    messages = [c.args[0] for c in mock_log.call_args_list]
    assert any("Service activation failed" in m for m in messages)
    assert any("Active: failed (Result: exit-code)" in m for m in messages)


def test_missing_firewall_still_completes(host, argv):
    calls = []

    result = main(
        argv,
        confirm=MagicMock(return_value=True),
        pipeline_factory=_factory(calls, degraded=("firewall",)),
    )

    assert result == 0
    assert calls[-1] == "activation"
    outcomes = host["final_info"].call_args.args[1]
    assert outcomes[2].status is StageStatus.DEGRADED


def test_invalid_configuration_exits_non_zero(host, tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("service:\n  port: 0\n", encoding="utf-8")

    result = main(
        ["--config", str(config_file)],
        confirm=MagicMock(return_value=True),
        pipeline_factory=_factory([]),
    )

    assert result == 1
    host["check_root"].assert_not_called()


def test_print_unit(capsys, host, argv):
    assert main(argv + ["--print-unit", "--port", "8080"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("[Unit]\n")
    assert "Environment=N8N_PORT=8080\n" in out
    host["check_root"].assert_not_called()


def test_print_unit_masks_custom_password(capsys, monkeypatch, host, argv):
    monkeypatch.setenv("N8N_BASIC_AUTH_PASSWORD", "s3cret")

    assert main(argv + ["--print-unit"]) == 0

    out = capsys.readouterr().out
    assert "s3cret" not in out
    assert "Environment=N8N_BASIC_AUTH_PASSWORD=********\n" in out


def test_print_unit_shows_default_password(capsys, host, argv):
    assert main(argv + ["--print-unit"]) == 0

    out = capsys.readouterr().out
    assert "Environment=N8N_BASIC_AUTH_PASSWORD=changeme123\n" in out


def test_view_config(mocker, host, argv):
    mock_view = mocker.patch("provisioner.main.view_configuration")

    assert main(argv + ["--view-config"]) == 0

    mock_view.assert_called_once()
    host["check_root"].assert_not_called()
