# tests/provisioner/stages/test_identity_stage.py
import pytest

from provisioner.stages.identity import create_service_user


@pytest.fixture
def mock_run_elevated_command(mocker):
    return mocker.patch("provisioner.stages.identity.run_elevated_command")


def test_creates_missing_user(
    mocker, mock_run_elevated_command, app_settings, mock_logger
):
    mocker.patch(
        "provisioner.stages.identity.host_probe.exists", return_value=False
    )

    outcome = create_service_user(app_settings, mock_logger)

    assert [c.args[0] for c in mock_run_elevated_command.call_args_list] == [
        [
            "useradd",
            "--system",
            "--create-home",
            "--home-dir",
            "/home/n8n",
            "--shell",
            "/bin/bash",
            "n8n",
        ],
        ["mkdir", "-p", "/home/n8n/.n8n"],
        ["chown", "-R", "n8n:n8n", "/home/n8n/.n8n"],
    ]
    assert outcome.details["created"] is True
    assert outcome.warnings == []


def test_existing_user_still_reconciles_directory(
    mocker, mock_run_elevated_command, app_settings, mock_logger
):
    mocker.patch(
        "provisioner.stages.identity.host_probe.exists", return_value=True
    )

    outcome = create_service_user(app_settings, mock_logger)

    commands = [c.args[0][0] for c in mock_run_elevated_command.call_args_list]
    assert commands == ["mkdir", "chown"]
    assert outcome.details["created"] is False
    assert outcome.warnings == ["User n8n already exists"]
    mock_logger.warning.assert_called_once()
