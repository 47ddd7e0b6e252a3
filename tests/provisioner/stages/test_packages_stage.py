# tests/provisioner/stages/test_packages_stage.py
import subprocess

import pytest

from provisioner.config_models import PREREQUISITE_PACKAGES_DEFAULT
from provisioner.stages.packages import update_system


@pytest.fixture
def mock_apt_manager(mocker):
    return mocker.patch("provisioner.stages.packages.AptManager")


def test_update_system(mock_apt_manager, app_settings, mock_logger):
    outcome = update_system(app_settings, mock_logger)

    apt = mock_apt_manager.return_value
    apt.update.assert_called_once_with(app_settings)
    apt.upgrade.assert_called_once_with(app_settings)
    apt.install.assert_called_once_with(
        PREREQUISITE_PACKAGES_DEFAULT, app_settings, update_first=False
    )
    assert outcome.name == "packages"
    assert outcome.details["prerequisites"] == PREREQUISITE_PACKAGES_DEFAULT


def test_update_system_stops_on_failure(
    mock_apt_manager, app_settings, mock_logger
):
    apt = mock_apt_manager.return_value
    apt.update.side_effect = subprocess.CalledProcessError(
        100, ["apt-get", "update", "-y"]
    )

    with pytest.raises(subprocess.CalledProcessError):
        update_system(app_settings, mock_logger)

    apt.upgrade.assert_not_called()
    apt.install.assert_not_called()
