"""Host inspection helpers for Checkend Setup."""

import getpass
import os
import platform
import shlex
import shutil
from typing import Callable, Dict, Optional

from checkendsetup.constants import OS_RELEASE_PATH
from checkendsetup.models import OsRelease

DEBIAN_FAMILY = ("ubuntu", "debian")


def parse_os_release(text: str) -> OsRelease:
    values: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw_value = line.partition("=")
        try:
            parts = shlex.split(raw_value)
        except ValueError:
            parts = [raw_value.strip("\"'")]
        values[key.strip()] = parts[0] if parts else ""

    return OsRelease(
        id=values.get("ID", "").lower(),
        id_like=values.get("ID_LIKE", "").lower(),
        version_codename=values.get("VERSION_CODENAME") or values.get("UBUNTU_CODENAME", ""),
    )


def is_debian_family(release: OsRelease) -> bool:
    if release.id in DEBIAN_FAMILY:
        return True
    return any(name in release.id_like for name in DEBIAN_FAMILY)


def running_as_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def apt_repository_distro(release: OsRelease) -> str:
    """Name of Docker's apt repository that matches the host."""
    if release.id in DEBIAN_FAMILY:
        return release.id
    if "ubuntu" in release.id_like:
        return "ubuntu"
    return "debian"


class HostService:
    """Reads OS identity, privileges and binaries of the local host."""

    def __init__(
        self,
        run_cmd: Callable,
        os_release_path: str = OS_RELEASE_PATH,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        self.run_cmd = run_cmd
        self.os_release_path = os_release_path
        self.which = which

    def os_release(self) -> OsRelease:
        if not os.path.exists(self.os_release_path):
            return OsRelease()
        with open(self.os_release_path, "r", encoding="utf-8") as file_obj:
            return parse_os_release(file_obj.read())

    def is_linux(self) -> bool:
        return platform.system() == "Linux"

    def is_root(self) -> bool:
        return running_as_root()

    def current_user(self) -> str:
        return os.environ.get("USER") or getpass.getuser()

    def command_path(self, name: str) -> Optional[str]:
        return self.which(name)

    def user_in_group(self, user: str, group: str) -> bool:
        result = self.run_cmd(["id", "-nG", user], check=False, capture_output=True)
        if result.returncode != 0:
            return False
        return group in (result.stdout or "").split()
