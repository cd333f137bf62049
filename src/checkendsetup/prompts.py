"""Interactive prompt resolution for Checkend Setup.

Resolvers are pure functions from raw operator input to a value, so every
prompt's default handling can be checked without a terminal. ``Prompter``
binds them to an input function.
"""

from typing import Callable, Optional, Tuple

from rich.console import Console
from rich.markup import escape

from checkendsetup.models import DeploymentMode, SessionRefresh

_YES = {"y", "yes"}
_NO = {"n", "no"}


def resolve_yes_no(raw: Optional[str], default: bool) -> bool:
    answer = (raw or "").strip().lower()
    if answer in _YES:
        return True
    if answer in _NO:
        return False
    return default


def resolve_deployment_mode(raw: Optional[str]) -> Tuple[DeploymentMode, bool]:
    """Returns the mode and whether the input was a recognized choice."""
    answer = (raw or "").strip()
    if answer == DeploymentMode.DIRECT_SSL.value:
        return DeploymentMode.DIRECT_SSL, True
    if answer == DeploymentMode.REVERSE_PROXY.value:
        return DeploymentMode.REVERSE_PROXY, True
    return DeploymentMode.REVERSE_PROXY, False


def resolve_session_refresh(raw: Optional[str]) -> SessionRefresh:
    answer = (raw or "").strip()
    if answer == SessionRefresh.USE_SUDO.value:
        return SessionRefresh.USE_SUDO
    if answer == SessionRefresh.REEXEC.value:
        return SessionRefresh.REEXEC
    return SessionRefresh.EXIT


def resolve_version_tag(raw: Optional[str]) -> Optional[str]:
    answer = (raw or "").strip()
    if not answer or answer.lower() == "latest":
        return None
    return answer


def resolve_domain(raw: Optional[str]) -> Optional[str]:
    answer = (raw or "").strip()
    return answer or None


class Prompter:
    """Reads operator answers and resolves them with the functions above."""

    def __init__(self, console: Console, input_func: Optional[Callable[[str], str]] = None):
        self.console = console
        self.input = input_func or console.input

    def ask(self, question: str, default: str = "") -> str:
        answer = self.input(escape(question))
        return answer if answer and answer.strip() else default

    def confirm(self, question: str, default: bool) -> bool:
        suffix = "(Y/n)" if default else "(y/N)"
        return resolve_yes_no(self.ask(f"{question} {suffix}: "), default)

    def choose_deployment_mode(self) -> Tuple[DeploymentMode, bool]:
        self.console.print("[blue]Deployment Mode[/blue]")
        self.console.print("How will you expose Checkend to the web?")
        self.console.print("")
        self.console.print("  1) Direct - Checkend handles SSL via Let's Encrypt (ports 80/443)")
        self.console.print("  2) Reverse Proxy - You'll use nginx, Caddy, Traefik, etc.")
        self.console.print("")
        return resolve_deployment_mode(self.ask("Choose [1/2]: "))

    def ask_domain(self) -> str:
        domain = resolve_domain(self.ask("Domain (e.g., checkend.example.com): "))
        while domain is None:
            self.console.print("[red]Domain is required for SSL.[/red]")
            domain = resolve_domain(self.ask("Domain: "))
        return domain

    def choose_session_refresh(self) -> SessionRefresh:
        self.console.print("[yellow]Session refresh required[/yellow]")
        self.console.print("")
        self.console.print("Your group membership has changed but your current session")
        self.console.print("doesn't reflect it yet. Choose how to proceed:")
        self.console.print("")
        self.console.print("  1) Continue with sudo for Docker commands (recommended)")
        self.console.print("  2) Restart this tool with the new group (uses 'sg')")
        self.console.print("  3) Exit - I'll log out and back in manually")
        self.console.print("")
        return resolve_session_refresh(self.ask("Choose [1/2/3]: "))

    def ask_version_tag(self) -> Optional[str]:
        self.console.print("[blue]Version[/blue]")
        self.console.print("Which version do you want to install?")
        self.console.print("  - Leave empty for latest (recommended for trying out)")
        self.console.print("  - Or specify a version tag like 'v1.0.0' (recommended for production)")
        self.console.print("")
        return resolve_version_tag(self.ask("Version [latest]: ", default="latest"))
