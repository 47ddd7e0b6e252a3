# tests/provisioner/test_cli_handler.py
# -*- coding: utf-8 -*-
import pytest
from pydantic import SecretStr

from provisioner.cli_handler import (
    cli_confirm,
    display_final_info,
    display_installation_plan,
    make_confirm,
    view_configuration,
)
from provisioner.config_models import AppSettings, ServiceSettings
from provisioner.pipeline import StageOutcome, StageStatus


def _logged_text(mock_logger):
    calls = (
        mock_logger.info.call_args_list
        + mock_logger.warning.call_args_list
    )
    return "\n".join(call.args[0] for call in calls)


@pytest.mark.parametrize(
    "answer,expected",
    [("y", True), ("YES", True), (" y ", True), ("n", False), ("", False)],
)
def test_cli_confirm_answers(mocker, app_settings, answer, expected):
    mocker.patch("builtins.input", return_value=answer)
    assert cli_confirm("Continue?", app_settings) is expected


def test_cli_confirm_eof_is_no(mocker, app_settings, mock_logger):
    mocker.patch("builtins.input", side_effect=EOFError)

    assert cli_confirm("Continue?", app_settings, mock_logger) is False
    assert mock_logger.warning.called


def test_make_confirm_assume_yes_never_prompts(
    mocker, app_settings, mock_logger
):
    mock_input = mocker.patch("builtins.input")

    confirm = make_confirm(app_settings, mock_logger, assume_yes=True)

    assert confirm("Do you want to continue?") is True
    mock_input.assert_not_called()


def test_make_confirm_prompts(mocker, app_settings, mock_logger):
    mocker.patch("builtins.input", return_value="n")

    confirm = make_confirm(app_settings, mock_logger)

    assert confirm("Do you want to continue?") is False


def test_installation_plan_mentions_default_password(
    app_settings, mock_logger
):
    display_installation_plan(app_settings, mock_logger)

    text = _logged_text(mock_logger)
    assert "Node.js 18" in text
    assert "User: n8n" in text
    assert "Port: 5678" in text
    assert "default basic-auth password" in text


def test_installation_plan_custom_password(mock_logger):
    settings = AppSettings(
        service=ServiceSettings(basic_auth_password=SecretStr("s3cret"))
    )

    display_installation_plan(settings, mock_logger)

    assert "default basic-auth password" not in _logged_text(mock_logger)


def test_view_configuration_hides_password(mock_logger):
    settings = AppSettings(
        service=ServiceSettings(basic_auth_password=SecretStr("s3cret"))
    )

    view_configuration(settings, mock_logger)

    text = _logged_text(mock_logger)
    assert "s3cret" not in text
    assert "/etc/systemd/system/n8n.service" in text
    assert "https://deb.nodesource.com/setup_18.x" in text


def test_display_final_info(app_settings, mock_logger):
    outcomes = [
        StageOutcome(
            name="runtime",
            details={"node_version": "v18.20.4", "npm_version": "10.7.0"},
        ),
        StageOutcome(name="application", details={"version": "1.62.5"}),
        StageOutcome(
            name="firewall",
            status=StageStatus.DEGRADED,
            warnings=["UFW not installed. Please configure firewall manually."],
        ),
    ]

    display_final_info(app_settings, outcomes, "203.0.113.7", mock_logger)

    text = _logged_text(mock_logger)
    assert "URL: http://203.0.113.7:5678" in text
    assert "Default Username: admin" in text
    assert "Default Password: changeme123" in text
    assert "sudo systemctl restart n8n" in text
    assert "sudo journalctl -u n8n -f" in text
    assert "Service file: /etc/systemd/system/n8n.service" in text
    assert "Data directory: /home/n8n/.n8n" in text
    assert "Node.js: v18.20.4" in text
    assert "n8n:     1.62.5" in text
    assert "[firewall] UFW not installed" in text
    assert "https://docs.n8n.io" in text


def test_display_final_info_custom_password_not_printed(mock_logger):
    settings = AppSettings(
        service=ServiceSettings(basic_auth_password=SecretStr("s3cret"))
    )

    display_final_info(settings, [], "YOUR_SERVER_IP", mock_logger)

    text = _logged_text(mock_logger)
    assert "s3cret" not in text
    assert "URL: http://YOUR_SERVER_IP:5678" in text
