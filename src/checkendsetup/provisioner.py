import logging
import os
import platform
from typing import Callable, Optional

import requests
from rich.console import Console
from rich.markup import escape

from .constants import (
    DEFAULT_CHECKOUT_DIR,
    DEFAULT_REPO_URL,
    ENV_FILE_NAME,
    OVERRIDE_FILE_NAME,
)
from .errors import SetupCancelled, SetupError
from .models import DeploymentMode, ExecutionContext
from .prompts import Prompter
from .services.checkout import CheckoutService
from .services.command_runner import CommandRunner
from .services.compose_override import ComposeOverrideService
from .services.docker_runtime import DockerRuntimeService, compose_command_for
from .services.env_file import EnvFileService
from .services.host import HostService, running_as_root
from .services.network import PublicAddressService
from .services.prerequisites import PrerequisiteResolver
from .services.session import SessionService

console = Console()
logger = logging.getLogger("checkendsetup")


class Provisioner:
    """Prepares a host to run Checkend: Docker, source checkout and configuration."""

    def __init__(
        self,
        install_dir: Optional[str] = None,
        repo_url: str = DEFAULT_REPO_URL,
        checkout_dir: str = DEFAULT_CHECKOUT_DIR,
        input_func: Optional[Callable[[str], str]] = None,
    ):
        self.install_dir = os.path.abspath(install_dir or os.getcwd())
        self.repo_url = repo_url
        self.checkout_dir = os.path.join(self.install_dir, checkout_dir)
        self.env_file = os.path.join(self.install_dir, ENV_FILE_NAME)
        self.override_file = os.path.join(self.install_dir, OVERRIDE_FILE_NAME)

        self.context = ExecutionContext()
        self.deployment_mode: Optional[DeploymentMode] = None
        self.domain: Optional[str] = None

        self.prompter = Prompter(console, input_func=input_func)
        self.command_runner = CommandRunner(logger=logger, is_root=running_as_root())
        self.host_service = HostService(run_cmd=self._run_cmd)
        self.docker_runtime_service = DockerRuntimeService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            requests_module=requests,
        )
        self.session_service = SessionService(logger=logger, console=console)
        self.prerequisite_resolver = PrerequisiteResolver(
            logger=logger,
            console=console,
            prompter=self.prompter,
            host=self.host_service,
            docker=self.docker_runtime_service,
            session=self.session_service,
        )
        self.checkout_service = CheckoutService(
            logger=logger,
            console=console,
            prompter=self.prompter,
            run_cmd=self._run_cmd,
            repo_url=self.repo_url,
        )
        self.env_file_service = EnvFileService(self.env_file, logger=logger, console=console)
        self.compose_override_service = ComposeOverrideService(
            self.override_file,
            logger=logger,
            console=console,
        )
        self.public_address_service = PublicAddressService(logger=logger, requests_module=requests)

    def _run_cmd(self, cmd, check: bool = True, capture_output: bool = False, **kwargs):
        return self.command_runner.run(cmd, check=check, capture_output=capture_output, **kwargs)

    def check_prerequisites(self):
        self.context = self.prerequisite_resolver.resolve()

    def prepare_source(self):
        self.checkout_service.ensure(self.checkout_dir)

    def choose_deployment(self):
        mode, recognized = self.prompter.choose_deployment_mode()
        self.deployment_mode = mode
        self.domain = None

        if mode == DeploymentMode.DIRECT_SSL:
            console.print("[blue]Direct Mode - SSL Configuration[/blue]")
            console.print("Enter your domain for automatic Let's Encrypt SSL.")
            self.domain = self.prompter.ask_domain()
            return

        if recognized:
            console.print("[green]Reverse Proxy Mode selected.[/green]")
        else:
            console.print("[yellow]Invalid choice. Defaulting to Reverse Proxy mode.[/yellow]")
            logger.warning("Unrecognized deployment mode choice; using reverse proxy mode.")
        console.print("Checkend will listen on port 3000. Configure your proxy to forward to it.")

    def configure(self) -> bool:
        """Writes `.env` and the Compose override; False when the operator keeps the old ones."""
        existing = {}
        if self.env_file_service.exists():
            console.print("[yellow]Existing .env file found.[/yellow]")
            existing = self.env_file_service.read_existing()
            if not self.prompter.confirm("Do you want to reconfigure?", default=False):
                console.print("Setup complete. Keeping existing configuration.")
                return False

        self.choose_deployment()
        record = self.env_file_service.build_record(existing, self.domain)

        console.print("[blue]Writing configuration...[/blue]")
        self.env_file_service.write(record)
        self.compose_override_service.write(self.deployment_mode)
        return True

    def print_next_steps(self):
        base = self.docker_runtime_service.get_docker_compose_cmd(self.context)
        compose_cmd = " ".join(compose_command_for(self.context, base))

        console.print("[blue]Setup complete![/blue]")
        console.print("")
        console.print("[blue]Next steps:[/blue]")
        console.print("")

        if self.deployment_mode == DeploymentMode.DIRECT_SSL:
            address = self.public_address_service.lookup() or "<your-server-ip>"
            console.print("1. Ensure your domain points to this server:")
            console.print(f"   {escape(self.domain)} -> {escape(address)}")
            console.print("")
            console.print("2. Ensure ports 80 and 443 are open in your firewall")
            console.print("")
            console.print("3. Build and start Checkend:")
            console.print(f"   {compose_cmd} up -d --build")
            console.print("")
            console.print(f"4. Visit https://{escape(self.domain)} and create your account")
        else:
            console.print("1. Build and start Checkend:")
            console.print(f"   {compose_cmd} up -d --build")
            console.print("")
            console.print("2. Configure your reverse proxy to forward to port 3000")
            console.print("   Example nginx: proxy_pass http://localhost:3000;")
            console.print("   Example Caddy: reverse_proxy localhost:3000")
            console.print("")
            console.print("3. Visit your domain and create your account")

        if platform.system() == "Linux":
            console.print("")
            console.print("[blue]Optional: Run as a system service[/blue]")
            console.print("To start Checkend automatically on boot:")
            console.print("  sudo checkend-install-service")

        if self.context.use_sudo:
            console.print("")
            console.print(
                "[yellow]Note:[/yellow] You're using sudo for Docker commands because your session"
            )
            console.print("hasn't picked up the docker group yet. After logging out and back in,")
            console.print("you can run Docker commands without sudo.")

    def run(self) -> int:
        try:
            console.print("[blue]Checkend[/blue] Community Edition Setup")
            console.print("================================")
            logger.info("Starting Checkend setup in %s", self.install_dir)

            self.check_prerequisites()
            self.prepare_source()

            if not self.configure():
                return 0

            self.print_next_steps()
            console.print("")
            console.print("[green]Done![/green]")
            return 0

        except SetupCancelled as exc:
            console.print(escape(str(exc)))
            logger.info("Setup ended by operator choice")
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
