"""Shared domain models for Checkend Setup."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class DeploymentMode(str, Enum):
    DIRECT_SSL = "1"
    REVERSE_PROXY = "2"


class SessionRefresh(str, Enum):
    USE_SUDO = "1"
    REEXEC = "2"
    EXIT = "3"


@dataclass(frozen=True)
class ExecutionContext:
    """Privilege choice applied to every Docker invocation of a run."""

    use_sudo: bool = False


@dataclass(frozen=True)
class OsRelease:
    id: str = ""
    id_like: str = ""
    version_codename: str = ""


@dataclass(frozen=True)
class EnvRecord:
    secret_key_base: str
    postgres_password: str
    thruster_tls_domain: Optional[str] = None


@dataclass(frozen=True)
class UnitSpec:
    service_name: str
    working_directory: str
    compose_command: List[str]

    @property
    def compose_command_line(self) -> str:
        return " ".join(self.compose_command)
