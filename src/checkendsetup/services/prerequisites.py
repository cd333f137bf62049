"""Prerequisite checks and remediation for the Docker toolchain."""

from checkendsetup.constants import DOCKER_GROUP
from checkendsetup.errors import SetupCancelled, SetupError
from checkendsetup.errors_catalog import actionable_error
from checkendsetup.models import ExecutionContext, SessionRefresh
from checkendsetup.services.docker_runtime import DaemonError, classify_daemon_error
from checkendsetup.services.host import is_debian_family


class PrerequisiteResolver:
    """Walks the Docker readiness checks and offers fixes on Debian/Ubuntu.

    Checks run in order and the first failing one decides the remediation:
    missing binary, unreachable daemon (permission or service state), then a
    missing Compose plugin. Every fix is gated by a confirmation; declining a
    required fix raises ``SetupError`` with the manual procedure.
    """

    def __init__(self, logger, console, prompter, host, docker, session):
        self.logger = logger
        self.console = console
        self.prompter = prompter
        self.host = host
        self.docker = docker
        self.session = session

    def resolve(self) -> ExecutionContext:
        ctx = ExecutionContext()
        release = self.host.os_release()
        debian_family = is_debian_family(release)

        if self.host.is_root():
            self.console.print(
                "[yellow]Note: Running as root. Consider using a regular user with sudo access.[/yellow]"
            )

        if not self.host.command_path("docker"):
            ctx = self._handle_missing_docker(release, debian_family)

        ok, error_text = self.docker.probe_daemon(ctx)
        if not ok:
            ctx = self._handle_daemon_failure(ctx, error_text)

        if not self.docker.has_compose_plugin(ctx):
            self._handle_missing_compose(debian_family)

        self.console.print("[green]Docker and Docker Compose are ready.[/green]")
        self.logger.info("Prerequisites satisfied (sudo fallback: %s)", ctx.use_sudo)
        return ctx

    def _handle_missing_docker(self, release, debian_family: bool) -> ExecutionContext:
        self.console.print("[red]Docker is not installed.[/red]")
        if not debian_family:
            raise SetupError(actionable_error("docker_not_installed"))

        if not self.prompter.confirm("Would you like to install Docker now?", default=True):
            raise SetupError(actionable_error("docker_install_declined"))

        self.docker.install_docker(release)
        self.docker.add_user_to_group(self.host.current_user(), DOCKER_GROUP)
        return self.refresh_session()

    def _handle_daemon_failure(self, ctx: ExecutionContext, error_text: str) -> ExecutionContext:
        kind = classify_daemon_error(error_text)
        self.logger.debug("Docker daemon probe failed (%s): %s", kind.value, error_text)

        if kind == DaemonError.PERMISSION_DENIED:
            user = self.host.current_user()
            if self.host.user_in_group(user, DOCKER_GROUP):
                self.console.print(
                    "[yellow]You're in the docker group, but your session needs to be refreshed.[/yellow]"
                )
                return self.refresh_session()

            self.console.print("[yellow]Your user is not in the docker group.[/yellow]")
            if not self.prompter.confirm(
                f"Would you like to add {user} to the docker group?", default=True
            ):
                raise SetupError(actionable_error("docker_group_declined"))
            self.docker.add_user_to_group(user, DOCKER_GROUP)
            return self.refresh_session()

        if kind == DaemonError.DAEMON_DOWN:
            self.console.print("[yellow]Docker daemon is not running.[/yellow]")
            if not self.prompter.confirm("Would you like to start Docker now?", default=True):
                raise SetupError(actionable_error("daemon_start_declined"))
            self.docker.start_daemon()
            return ctx

        raise SetupError(actionable_error("daemon_unreachable", error=error_text or "<no output>"))

    def _handle_missing_compose(self, debian_family: bool):
        self.console.print("[yellow]Docker Compose plugin is not installed.[/yellow]")
        if not debian_family:
            raise SetupError(actionable_error("compose_not_installed"))

        if not self.prompter.confirm("Would you like to install Docker Compose now?", default=True):
            raise SetupError(actionable_error("compose_install_declined"))
        self.docker.install_compose_plugin()

    def refresh_session(self) -> ExecutionContext:
        choice = self.prompter.choose_session_refresh()

        if choice == SessionRefresh.USE_SUDO:
            self.console.print("[green]Continuing with sudo for Docker commands...[/green]")
            return ExecutionContext(use_sudo=True)

        if choice == SessionRefresh.REEXEC:
            self.session.restart_under_group(DOCKER_GROUP)
            raise SetupError("Could not restart with the docker group.")

        raise SetupCancelled(
            "Please log out and log back in, then run:\n  checkend-setup"
        )
