"""Compose override rendering for the chosen deployment mode."""

from checkendsetup.errors import SetupError
from checkendsetup.models import DeploymentMode

# The domain stays a Compose variable resolved from .env at `up` time.
DIRECT_SSL_OVERRIDE = """services:
  app:
    ports:
      - "80:80"
      - "443:443"
    environment:
      - THRUSTER_TLS_DOMAIN=${THRUSTER_TLS_DOMAIN:-}
"""

REVERSE_PROXY_OVERRIDE = """services:
  app:
    ports:
      - "3000:80"
"""


class ComposeOverrideService:
    """Writes the merge-applied Compose file with mode-specific ports."""

    def __init__(self, override_file: str, logger, console):
        self.override_file = override_file
        self.logger = logger
        self.console = console

    def render(self, mode: DeploymentMode) -> str:
        if mode == DeploymentMode.DIRECT_SSL:
            return DIRECT_SSL_OVERRIDE
        return REVERSE_PROXY_OVERRIDE

    def write(self, mode: DeploymentMode):
        if mode == DeploymentMode.DIRECT_SSL:
            self.console.print("[blue]Creating compose.override.yml for direct SSL access...[/blue]")
            summary = "ports 80/443 with SSL"
        else:
            self.console.print("[blue]Creating compose.override.yml for reverse proxy access...[/blue]")
            summary = "port 3000"

        try:
            with open(self.override_file, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(self.render(mode))
        except OSError as exc:
            raise SetupError(f"Could not write override file '{self.override_file}': {exc}") from exc

        self.logger.info("Wrote %s for mode %s", self.override_file, mode.name)
        self.console.print(f"[green]Created compose.override.yml ({summary})[/green]")
