"""Docker runtime services for Checkend Setup."""

from enum import Enum
from typing import Callable, List, Optional, Tuple

import requests
from rich.markup import escape

from checkendsetup.constants import (
    APT_KEYRING_DIR,
    DOCKER_APT_SOURCE_PATH,
    DOCKER_DOWNLOAD_URL,
    DOCKER_GROUP,
    DOCKER_KEYRING_PATH,
)
from checkendsetup.errors import SetupError
from checkendsetup.errors_catalog import actionable_error
from checkendsetup.models import ExecutionContext, OsRelease
from checkendsetup.services.host import HostService, apt_repository_distro

LEGACY_PACKAGES = ["docker", "docker-engine", "docker.io", "containerd", "runc"]
APT_PREREQUISITES = ["ca-certificates", "curl", "gnupg"]
DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]


class DaemonError(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    DAEMON_DOWN = "daemon_down"
    OTHER = "other"


def classify_daemon_error(error_text: str) -> DaemonError:
    text = (error_text or "").lower()
    if "permission denied" in text:
        return DaemonError.PERMISSION_DENIED
    if "is the docker daemon running" in text or "cannot connect" in text:
        return DaemonError.DAEMON_DOWN
    return DaemonError.OTHER


def compose_command_for(ctx: ExecutionContext, base: Optional[List[str]] = None) -> List[str]:
    prefix = ["sudo"] if ctx.use_sudo else []
    return prefix + (base or ["docker", "compose"])


class DockerRuntimeService:
    """Probes, installs and starts Docker and its Compose plugin."""

    def __init__(self, logger, console, run_cmd: Callable, requests_module=requests):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.requests = requests_module

    def _docker(self, ctx: ExecutionContext, args: List[str]):
        return self.run_cmd(
            ["docker"] + args,
            check=False,
            capture_output=True,
            elevate=ctx.use_sudo,
        )

    def probe_daemon(self, ctx: ExecutionContext) -> Tuple[bool, str]:
        result = self._docker(ctx, ["info"])
        if result.returncode == 0:
            return True, ""
        error_text = "\n".join(
            part.strip() for part in (result.stderr, result.stdout) if part and part.strip()
        )
        return False, error_text

    def has_compose_plugin(self, ctx: ExecutionContext) -> bool:
        return self._docker(ctx, ["compose", "version"]).returncode == 0

    def get_docker_compose_cmd(self, ctx: Optional[ExecutionContext] = None) -> List[str]:
        ctx = ctx or ExecutionContext()
        try:
            self.run_cmd(["docker", "compose", "version"], capture_output=True, elevate=ctx.use_sudo)
            return ["docker", "compose"]
        except SetupError:
            try:
                self.run_cmd(["docker-compose", "--version"], capture_output=True, elevate=ctx.use_sudo)
                return ["docker-compose"]
            except SetupError:
                raise SetupError(actionable_error("compose_unavailable"))

    def resolve_unit_compose_command(self, host: HostService) -> List[str]:
        """Compose invocation with absolute paths, as systemd requires."""
        docker_path = host.command_path("docker")
        if not docker_path:
            raise SetupError(actionable_error("docker_not_installed"))

        plugin = self.run_cmd([docker_path, "compose", "version"], check=False, capture_output=True)
        if plugin.returncode == 0:
            return [docker_path, "compose"]

        standalone = host.command_path("docker-compose")
        if standalone:
            return [standalone]

        raise SetupError(actionable_error("compose_unavailable"))

    def install_docker(self, release: OsRelease):
        self.console.print("[blue]Installing Docker...[/blue]")
        self.logger.info("Installing Docker from the official apt repository...")

        self.run_cmd(
            ["apt-get", "remove", "-y"] + LEGACY_PACKAGES,
            check=False,
            capture_output=True,
            elevate=True,
        )
        self.run_cmd(["apt-get", "update"], elevate=True)
        self.run_cmd(["apt-get", "install", "-y"] + APT_PREREQUISITES, elevate=True)

        self.run_cmd(["install", "-m", "0755", "-d", APT_KEYRING_DIR], elevate=True)
        self.run_cmd(["rm", "-f", DOCKER_KEYRING_PATH], elevate=True)

        distro = apt_repository_distro(release)
        self.run_cmd(
            ["gpg", "--batch", "--yes", "--dearmor", "-o", DOCKER_KEYRING_PATH],
            elevate=True,
            input_text=self.fetch_gpg_key(distro),
        )
        self.run_cmd(["chmod", "a+r", DOCKER_KEYRING_PATH], elevate=True)

        arch = self.run_cmd(["dpkg", "--print-architecture"], capture_output=True).stdout.strip()
        self.run_cmd(
            ["tee", DOCKER_APT_SOURCE_PATH],
            capture_output=True,
            elevate=True,
            input_text=self.build_apt_source(arch, distro, release.version_codename),
        )

        self.run_cmd(["apt-get", "update"], elevate=True)
        self.run_cmd(["apt-get", "install", "-y"] + DOCKER_PACKAGES, elevate=True)

        self.start_daemon()
        self.console.print("[green]Docker installed successfully.[/green]")

    def fetch_gpg_key(self, distro: str) -> str:
        url = f"{DOCKER_DOWNLOAD_URL}/{distro}/gpg"
        self.logger.info("Downloading Docker GPG key from %s", url)
        try:
            response = self.requests.get(url, timeout=60)
            response.raise_for_status()
        except self.requests.RequestException as exc:
            raise SetupError(f"Download failed for Docker GPG key: {exc}") from exc
        return response.text

    def build_apt_source(self, arch: str, distro: str, codename: str) -> str:
        if not codename:
            raise SetupError(
                "Could not detect the distribution codename from /etc/os-release. "
                "Install Docker manually: https://docs.docker.com/engine/install/"
            )
        return (
            f"deb [arch={arch} signed-by={DOCKER_KEYRING_PATH}] "
            f"{DOCKER_DOWNLOAD_URL}/{distro} {codename} stable\n"
        )

    def install_compose_plugin(self):
        self.console.print("[blue]Installing Docker Compose plugin...[/blue]")
        self.run_cmd(["apt-get", "update"], elevate=True)
        self.run_cmd(["apt-get", "install", "-y", "docker-compose-plugin"], elevate=True)
        self.console.print("[green]Docker Compose installed.[/green]")

    def start_daemon(self):
        self.console.print("[blue]Starting Docker daemon...[/blue]")
        self.run_cmd(["systemctl", "start", "docker"], elevate=True)
        self.run_cmd(["systemctl", "enable", "docker"], elevate=True)
        self.console.print("[green]Docker started.[/green]")

    def add_user_to_group(self, user: str, group: str = DOCKER_GROUP):
        self.console.print(f"[blue]Adding {escape(user)} to {group} group...[/blue]")
        self.run_cmd(["usermod", "-aG", group, user], elevate=True)
        self.console.print(f"[green]Added {escape(user)} to {group} group.[/green]")
