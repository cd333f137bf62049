"""Secrets record (`.env`) generation and persistence."""

import os
import secrets
import tempfile
from datetime import datetime
from typing import Dict, Optional

from checkendsetup.constants import (
    ENV_FILE_MODE,
    POSTGRES_PASSWORD_LENGTH,
    SECRET_KEY_BASE_LENGTH,
)
from checkendsetup.errors import SetupError
from checkendsetup.models import EnvRecord

SECRET_KEY_BASE = "SECRET_KEY_BASE"
POSTGRES_PASSWORD = "POSTGRES_PASSWORD"
THRUSTER_TLS_DOMAIN = "THRUSTER_TLS_DOMAIN"

SECRET_LENGTHS = {
    SECRET_KEY_BASE: SECRET_KEY_BASE_LENGTH,
    POSTGRES_PASSWORD: POSTGRES_PASSWORD_LENGTH,
}

_SEPARATOR = "# " + "=" * 77


def generate_secret(length: int) -> str:
    """Hex string of exactly ``length`` characters from the OS CSPRNG."""
    if length <= 0 or length % 2:
        raise ValueError("Secret length must be a positive even number of hex characters.")
    return secrets.token_hex(length // 2)


def parse_env(text: str) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        key = key.strip()
        if key not in values:
            values[key] = value.strip()
    return values


def render_env(record: EnvRecord, generated_at: Optional[datetime] = None) -> str:
    timestamp = (generated_at or datetime.now()).strftime("%a %b %d %H:%M:%S %Y")
    lines = [
        "# Checkend Community Edition Configuration",
        f"# Generated by checkend-setup on {timestamp}",
        "",
        _SEPARATOR,
        "# REQUIRED (auto-generated)",
        _SEPARATOR,
        "",
        f"{SECRET_KEY_BASE}={record.secret_key_base}",
        f"{POSTGRES_PASSWORD}={record.postgres_password}",
    ]
    if record.thruster_tls_domain:
        lines.extend(
            [
                "",
                "# Domain for automatic Let's Encrypt SSL",
                f"{THRUSTER_TLS_DOMAIN}={record.thruster_tls_domain}",
            ]
        )
    return "\n".join(lines) + "\n"


class EnvFileService:
    """Reads, builds and writes the secrets record without rotating secrets."""

    def __init__(self, env_file: str, logger, console):
        self.env_file = env_file
        self.logger = logger
        self.console = console

    def exists(self) -> bool:
        return os.path.isfile(self.env_file)

    def read_existing(self) -> Dict[str, str]:
        if not self.exists():
            return {}

        try:
            with open(self.env_file, "r", encoding="utf-8") as file_obj:
                values = parse_env(file_obj.read())
        except OSError as exc:
            raise SetupError(f"Could not read configuration file '{self.env_file}': {exc}") from exc

        return {key: value for key, value in values.items() if value}

    def build_record(self, existing: Dict[str, str], domain: Optional[str]) -> EnvRecord:
        self.console.print("[blue]Configuring secrets...[/blue]")
        resolved: Dict[str, str] = {}
        for key, length in SECRET_LENGTHS.items():
            if existing.get(key):
                resolved[key] = existing[key]
                note = " (matches existing database)" if key == POSTGRES_PASSWORD else ""
                self.console.print(f"  {key}: preserved{note}")
            else:
                resolved[key] = generate_secret(length)
                self.console.print(f"  {key}: generated")
        self.console.print("[green]Secrets configured.[/green]")

        return EnvRecord(
            secret_key_base=resolved[SECRET_KEY_BASE],
            postgres_password=resolved[POSTGRES_PASSWORD],
            thruster_tls_domain=domain,
        )

    def render(self, record: EnvRecord) -> str:
        return render_env(record)

    def write(self, record: EnvRecord):
        content = self.render(record)
        directory = os.path.dirname(os.path.abspath(self.env_file))
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(prefix=".env-", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
            os.chmod(temp_path, ENV_FILE_MODE)
            os.replace(temp_path, self.env_file)
        except OSError as exc:
            raise SetupError(f"Could not write configuration file '{self.env_file}': {exc}") from exc
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass

        self.logger.info("Configuration saved to %s", self.env_file)
        self.console.print(f"[green]Configuration saved to {os.path.basename(self.env_file)}[/green]")
