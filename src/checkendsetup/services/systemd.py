"""systemd unit management for the Checkend Compose stack."""

import os
from typing import Callable

from checkendsetup.constants import DOCUMENTATION_URL, SYSTEMD_UNIT_DIR, UNIT_FILE_MODE
from checkendsetup.errors import SetupError
from checkendsetup.models import UnitSpec


def render_unit(spec: UnitSpec) -> str:
    compose = spec.compose_command_line
    return f"""[Unit]
Description=Checkend Community Edition
Documentation={DOCUMENTATION_URL}
After=network-online.target docker.service
Requires=docker.service
Wants=network-online.target

[Service]
Type=oneshot
RemainAfterExit=yes
WorkingDirectory={spec.working_directory}
ExecStart={compose} up -d --remove-orphans
ExecStop={compose} down
ExecReload={compose} up -d --remove-orphans
TimeoutStartSec=300
TimeoutStopSec=120

# Restart configuration
Restart=on-failure
RestartSec=10

# Security hardening (where possible with Docker)
ProtectSystem=full
PrivateTmp=true
NoNewPrivileges=true

[Install]
WantedBy=multi-user.target
"""


class SystemdService:
    """Thin wrapper over systemctl for a single named unit."""

    def __init__(self, logger, console, run_cmd: Callable, unit_dir: str = SYSTEMD_UNIT_DIR):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.unit_dir = unit_dir

    def unit_path(self, service_name: str) -> str:
        return os.path.join(self.unit_dir, f"{service_name}.service")

    def unit_exists(self, service_name: str) -> bool:
        result = self.run_cmd(
            ["systemctl", "list-unit-files", "--no-legend", "--no-pager"],
            check=False,
            capture_output=True,
        )
        unit_name = f"{service_name}.service"
        for line in (result.stdout or "").splitlines():
            fields = line.split()
            if fields and fields[0] == unit_name:
                return True
        return False

    def stop_and_disable(self, service_name: str):
        self.console.print("[blue]Stopping existing service...[/blue]")
        self.run_cmd(["systemctl", "stop", service_name], check=False, capture_output=True)
        self.run_cmd(["systemctl", "disable", service_name], check=False, capture_output=True)

    def write_unit(self, spec: UnitSpec) -> str:
        self.console.print("[blue]Creating systemd service...[/blue]")
        path = self.unit_path(spec.service_name)
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(render_unit(spec))
            os.chmod(path, UNIT_FILE_MODE)
        except OSError as exc:
            raise SetupError(f"Could not write unit file '{path}': {exc}") from exc

        self.logger.info("Wrote unit file %s", path)
        self.console.print("[green]Service file created.[/green]")
        return path

    def daemon_reload(self):
        self.console.print("[blue]Reloading systemd...[/blue]")
        self.run_cmd(["systemctl", "daemon-reload"])
        self.console.print("[green]systemd reloaded.[/green]")

    def enable(self, service_name: str):
        self.console.print("[blue]Enabling service to start on boot...[/blue]")
        self.run_cmd(["systemctl", "enable", service_name], capture_output=True)
        self.console.print("[green]Service enabled.[/green]")

    def start(self, service_name: str) -> bool:
        result = self.run_cmd(["systemctl", "start", service_name], check=False, capture_output=True)
        return result.returncode == 0
