# tests/provisioner/stages/test_activation_stage.py
import pytest

from provisioner.config_models import AppSettings
from provisioner.exceptions import ServiceActivationError
from provisioner.stages.activation import start_service


@pytest.fixture
def mocks(mocker):
    return {
        "start": mocker.patch("provisioner.stages.activation.systemd_start"),
        "sleep": mocker.patch("provisioner.stages.activation.time.sleep"),
        "is_active": mocker.patch(
            "provisioner.stages.activation.systemd_is_active",
            return_value=True,
        ),
        "status": mocker.patch(
            "provisioner.stages.activation.systemd_status",
            return_value="● n8n.service\n   Active: failed (Result: exit-code)",
        ),
    }


def test_service_becomes_active(mocks, app_settings, mock_logger):
    outcome = start_service(app_settings, mock_logger)

    mocks["start"].assert_called_once_with("n8n", app_settings, mock_logger)
    mocks["sleep"].assert_called_once_with(0)
    mocks["is_active"].assert_called_once()
    mocks["status"].assert_not_called()
    assert outcome.details == {"service": "n8n", "state": "active"}


def test_waits_configured_delay(mocks, mock_logger):
    start_service(AppSettings(), mock_logger)

    mocks["sleep"].assert_called_once_with(5.0)


def test_inactive_service_raises_with_diagnostics(
    mocks, app_settings, mock_logger
):
    mocks["is_active"].return_value = False

    with pytest.raises(ServiceActivationError) as exc_info:
        start_service(app_settings, mock_logger)

    error = exc_info.value
    assert error.stage == "activation"
    assert "Active: failed" in error.diagnostics
    # A single check, no retries.
    mocks["is_active"].assert_called_once()
    mocks["start"].assert_called_once()
