import logging
import os
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from .constants import COMPOSE_FILE_NAMES, DEFAULT_SERVICE_NAME, ENV_FILE_NAME, SYSTEMD_UNIT_DIR
from .errors import SetupError
from .errors_catalog import actionable_error
from .models import UnitSpec
from .prompts import Prompter
from .services.command_runner import CommandRunner
from .services.docker_runtime import DockerRuntimeService
from .services.host import HostService, running_as_root
from .services.systemd import SystemdService

console = Console()
logger = logging.getLogger("checkendsetup")


class ServiceInstaller:
    """Registers the provisioned Compose stack as a systemd unit."""

    def __init__(
        self,
        install_dir: Optional[str] = None,
        service_name: str = DEFAULT_SERVICE_NAME,
        unit_dir: str = SYSTEMD_UNIT_DIR,
        input_func: Optional[Callable[[str], str]] = None,
    ):
        self.install_dir = os.path.abspath(install_dir or os.getcwd())
        self.service_name = service_name
        self.env_file = os.path.join(self.install_dir, ENV_FILE_NAME)

        self.prompter = Prompter(console, input_func=input_func)
        self.command_runner = CommandRunner(logger=logger, is_root=running_as_root())
        self.host_service = HostService(run_cmd=self._run_cmd)
        self.docker_runtime_service = DockerRuntimeService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
        )
        self.systemd_service = SystemdService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            unit_dir=unit_dir,
        )

    def _run_cmd(self, cmd, check: bool = True, capture_output: bool = False, **kwargs):
        return self.command_runner.run(cmd, check=check, capture_output=capture_output, **kwargs)

    def validate_preconditions(self) -> UnitSpec:
        if not self.host_service.is_linux():
            raise SetupError(actionable_error("unsupported_os"))

        if not self.host_service.command_path("systemctl"):
            raise SetupError(actionable_error("systemd_missing"))

        if not self.host_service.is_root():
            raise SetupError(actionable_error("root_required"))

        if not os.path.isfile(self.env_file):
            raise SetupError(actionable_error("configuration_missing", path=self.env_file))

        if not any(
            os.path.isfile(os.path.join(self.install_dir, name)) for name in COMPOSE_FILE_NAMES
        ):
            raise SetupError(actionable_error("compose_file_missing", path=self.install_dir))

        compose_command = self.docker_runtime_service.resolve_unit_compose_command(self.host_service)
        return UnitSpec(
            service_name=self.service_name,
            working_directory=self.install_dir,
            compose_command=compose_command,
        )

    def start_service(self):
        console.print("[blue]Starting Checkend...[/blue]")
        if not self.systemd_service.start(self.service_name):
            raise SetupError(
                actionable_error(
                    "service_start_failed",
                    service_name=self.service_name,
                    install_dir=self.install_dir,
                )
            )
        console.print("[green]Checkend started.[/green]")

    def print_useful_commands(self):
        name = self.service_name
        unit_path = self.systemd_service.unit_path(name)
        sections = [
            ("Check status", [f"sudo systemctl status {name}"]),
            ("View logs", [f"sudo journalctl -u {name} -f"]),
            ("Stop service", [f"sudo systemctl stop {name}"]),
            ("Start service", [f"sudo systemctl start {name}"]),
            ("Restart service", [f"sudo systemctl restart {name}"]),
            ("Disable auto-start on boot", [f"sudo systemctl disable {name}"]),
            (
                "Uninstall service",
                [
                    f"sudo systemctl stop {name}",
                    f"sudo systemctl disable {name}",
                    f"sudo rm {unit_path}",
                    "sudo systemctl daemon-reload",
                ],
            ),
        ]

        console.print("[blue]Useful commands:[/blue]")
        for title, commands in sections:
            console.print("")
            console.print(f"  {title}:")
            for command in commands:
                console.print(f"    {escape(command)}")

    def run(self) -> int:
        try:
            console.print("[blue]Checkend Service Installer[/blue]")
            console.print("===========================")

            spec = self.validate_preconditions()
            console.print(f"[blue]Installation directory:[/blue] {escape(spec.working_directory)}")
            console.print(f"[blue]Service name:[/blue] {escape(spec.service_name)}")
            logger.info("Compose command for unit: %s", spec.compose_command_line)

            if self.systemd_service.unit_exists(self.service_name):
                console.print(f"[yellow]Service '{escape(self.service_name)}' already exists.[/yellow]")
                if not self.prompter.confirm("Do you want to reinstall it?", default=False):
                    console.print("Installation cancelled.")
                    return 0
                self.systemd_service.stop_and_disable(self.service_name)

            self.systemd_service.write_unit(spec)
            self.systemd_service.daemon_reload()
            self.systemd_service.enable(self.service_name)

            if self.prompter.confirm("Do you want to start Checkend now?", default=True):
                self.start_service()

            console.print("")
            console.print("[green]Installation complete![/green]")
            console.print("")
            self.print_useful_commands()
            return 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except SetupError as exc:
            console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(exc))}")
            logger.exception("Unexpected error")
            return 1
