"""Source checkout service for the Checkend application."""

import os
from typing import Callable, List, Optional


def build_clone_command(repo_url: str, destination: str, tag: Optional[str]) -> List[str]:
    if tag is None:
        return ["git", "clone", "--quiet", repo_url, destination]
    return ["git", "clone", "--quiet", "-b", tag, "--single-branch", repo_url, destination]


class CheckoutService:
    """Clones the application once and updates it in place afterwards."""

    def __init__(self, logger, console, prompter, run_cmd: Callable, repo_url: str):
        self.logger = logger
        self.console = console
        self.prompter = prompter
        self.run_cmd = run_cmd
        self.repo_url = repo_url

    def ensure(self, checkout_dir: str):
        if os.path.isdir(checkout_dir):
            self.console.print("[yellow]Checkend source found.[/yellow]")
            if self.prompter.confirm("Do you want to update it?", default=True):
                self.update(checkout_dir)
            return

        tag = self.prompter.ask_version_tag()
        self.clone(checkout_dir, tag)

    def update(self, checkout_dir: str):
        self.console.print("[blue]Updating Checkend source...[/blue]")
        self.logger.info("Pulling latest changes in %s", checkout_dir)
        self.run_cmd(["git", "-C", checkout_dir, "pull", "--quiet"], capture_output=True)
        self.console.print("[green]Checkend source updated.[/green]")

    def clone(self, checkout_dir: str, tag: Optional[str]):
        self.console.print("[blue]Cloning Checkend source...[/blue]")
        self.logger.info("Cloning %s (%s) into %s", self.repo_url, tag or "latest", checkout_dir)
        self.run_cmd(build_clone_command(self.repo_url, checkout_dir, tag), capture_output=True)
        self.console.print("[green]Checkend source cloned.[/green]")
