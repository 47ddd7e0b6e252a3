# tests/provisioner/test_provisioning_flow.py
# -*- coding: utf-8 -*-
"""
Runs the real stage functions end to end. Only subprocess, PATH lookup, the
account database and the unit directory are faked.
"""

import subprocess

import pytest

from provisioner.config_models import AppSettings
from provisioner.main import main
from provisioner.pipeline import StageStatus
from provisioner.stages import build_default_pipeline

# Output of read-only commands, matched on the leading arguments.
COMMAND_OUTPUT = [
    (["curl"], "#!/bin/bash\necho nodesource\n"),
    (["node", "--version"], "v18.20.4\n"),
    (["npm", "--version"], "10.7.0\n"),
    (["n8n", "--version"], "1.62.5\n"),
    (["ufw", "status"], "Status: inactive\n"),
    (["dpkg-query"], "not-installed"),
]

NPM_INSTALL = ["npm", "install", "-g", "n8n"]


class FakeHost:
    """Records every command and answers it like a fresh Ubuntu host."""

    def __init__(self, failing=None):
        self.failing = failing
        self.commands = []
        self.inputs = {}

    def run(
        self, command, check=True, capture_output=False, text=True, input=None
    ):
        command = list(command)
        self.commands.append(command)
        if input is not None:
            self.inputs[command[0]] = input

        stdout = ""
        for prefix, output in COMMAND_OUTPUT:
            if command[: len(prefix)] == prefix:
                stdout = output
        returncode = 1 if command == self.failing else 0
        if check and returncode:
            raise subprocess.CalledProcessError(
                returncode, command, output=stdout, stderr="npm ERR! failed"
            )
        return subprocess.CompletedProcess(
            command, returncode, stdout=stdout, stderr=""
        )

    def ran(self, command):
        return command in self.commands

    def ran_program(self, program):
        return any(command[0] == program for command in self.commands)

    def index(self, command):
        return self.commands.index(command)


@pytest.fixture
def fake_host(mocker):
    def install(failing=None):
        host = FakeHost(failing=failing)
        mocker.patch("common.command_utils.subprocess.run", side_effect=host.run)
        mocker.patch(
            "common.command_utils.shutil.which",
            side_effect=lambda name: f"/usr/bin/{name}",
        )
        mocker.patch("common.command_utils.os.geteuid", return_value=0)
        mocker.patch("provisioner.preflight.os.geteuid", return_value=0)
        mocker.patch(
            "provisioner.host_probe.pwd.getpwnam", side_effect=KeyError
        )
        mocker.patch(
            "provisioner.host_probe.service_unit_exists", return_value=False
        )
        mocker.patch("provisioner.main.setup_logging")
        mocker.patch("provisioner.main.check_host_os")
        mocker.patch(
            "provisioner.main.get_public_ip_address",
            return_value="203.0.113.7",
        )
        return host

    return install


@pytest.fixture
def config_argv(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("activation_delay: 0\n", encoding="utf-8")
    return ["--config", str(config_file), "--yes"]


def test_fresh_host_completes(fake_host, config_argv):
    host = fake_host()

    assert main(config_argv) == 0

    assert host.ran(NPM_INSTALL)
    assert host.ran_program("useradd")
    assert host.ran(["tee", "/etc/systemd/system/n8n.service"])
    assert host.ran(["systemctl", "enable", "n8n"])
    assert host.ran(["ufw", "--force", "enable"])
    assert host.ran(["systemctl", "start", "n8n"])
    assert host.inputs["tee"].startswith("[Unit]\n")
    assert "User=n8n\n" in host.inputs["tee"]
    assert host.inputs["bash"] == "#!/bin/bash\necho nodesource\n"

    # Stage order, and SSH is allowed before the firewall comes up.
    assert host.index(NPM_INSTALL) < host.index(
        ["systemctl", "daemon-reload"]
    )
    assert host.index(["ufw", "allow", "ssh"]) < host.index(
        ["ufw", "--force", "enable"]
    )
    assert host.index(["ufw", "--force", "enable"]) < host.index(
        ["systemctl", "start", "n8n"]
    )


def test_failed_npm_install_stops_later_stages(fake_host, config_argv):
    host = fake_host(failing=NPM_INSTALL)

    assert main(config_argv) == 1

    assert host.commands[-1] == NPM_INSTALL
    assert not host.ran_program("useradd")
    assert not host.ran_program("tee")
    assert not host.ran_program("ufw")
    assert not host.ran(["systemctl", "start", "n8n"])


def test_default_pipeline_outcomes(fake_host, mock_logger):
    fake_host()
    pipeline = build_default_pipeline(
        AppSettings(activation_delay=0), mock_logger
    )

    outcomes = pipeline.run()

    assert [outcome.name for outcome in outcomes] == [
        "packages",
        "runtime",
        "application",
        "identity",
        "service",
        "firewall",
        "activation",
    ]
    assert all(o.status is StageStatus.APPLIED for o in outcomes)
    assert outcomes[2].details["version"] == "1.62.5"
    assert outcomes[3].details["created"] is True


def test_default_pipeline_reraises_failure(fake_host, mock_logger):
    fake_host(failing=NPM_INSTALL)
    pipeline = build_default_pipeline(
        AppSettings(activation_delay=0), mock_logger
    )

    with pytest.raises(subprocess.CalledProcessError):
        pipeline.run()

    assert [outcome.name for outcome in pipeline.outcomes] == [
        "packages",
        "runtime",
    ]
