"""Actionable error catalog for Checkend Setup."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "docker_not_installed": {
        "what": "Docker is not installed.",
        "next": "Install Docker first: https://docs.docker.com/engine/install/",
    },
    "docker_install_declined": {
        "what": "Docker is required but installation was declined.",
        "next": "Install Docker manually: https://docs.docker.com/engine/install/ubuntu/",
    },
    "docker_group_declined": {
        "what": "Your user is not in the docker group.",
        "next": "Run `sudo usermod -aG docker $USER`, log out and back in, then run this tool again.",
    },
    "daemon_start_declined": {
        "what": "Docker daemon is not running.",
        "next": "Start it manually with `sudo systemctl start docker`.",
    },
    "daemon_unreachable": {
        "what": "Cannot connect to Docker daemon.\nError: {error}",
        "next": "Run `docker info` to inspect the daemon state.",
    },
    "compose_install_declined": {
        "what": "Docker Compose plugin is not installed.",
        "next": "Install it manually with `sudo apt-get install docker-compose-plugin`.",
    },
    "compose_not_installed": {
        "what": "Docker Compose plugin is not installed.",
        "next": "Install Docker Compose: https://docs.docker.com/compose/install/",
    },
    "unsupported_os": {
        "what": "This tool only supports Linux with systemd.",
        "next": (
            "On macOS, Docker Desktop manages containers automatically. "
            "For other systems, consult your init system's documentation."
        ),
    },
    "systemd_missing": {
        "what": "systemd is not available on this system.",
        "next": "For other init systems (e.g., OpenRC, runit), configure the service manually.",
    },
    "root_required": {
        "what": "This command must be run as root or with sudo.",
        "next": "Run `sudo checkend-install-service`.",
    },
    "configuration_missing": {
        "what": "Configuration not found: {path}",
        "next": "Run `checkend-setup` first.",
    },
    "compose_file_missing": {
        "what": "Docker Compose file not found in {path}.",
        "next": "Run the installer from the directory that holds `compose.yml`.",
    },
    "compose_unavailable": {
        "what": "Docker Compose is not installed.",
        "next": "Install Docker Compose v2 (`docker compose`) or v1 (`docker-compose`) and try again.",
    },
    "service_start_failed": {
        "what": "Failed to start {service_name}.",
        "next": (
            "View the error with `sudo journalctl -u {service_name} -n 50`. "
            "You can also run Docker Compose directly: `cd {install_dir} && docker compose up`."
        ),
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
