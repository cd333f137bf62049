import io
import subprocess

import pytest
from rich.console import Console

import checkendsetup.service_installer as service_installer_module
from checkendsetup.service_installer import ServiceInstaller


class FakeHost:
    def __init__(self, linux=True, systemctl=True, root=True, docker="/usr/bin/docker"):
        self.linux = linux
        self.systemctl = systemctl
        self.root = root
        self.docker = docker

    def is_linux(self):
        return self.linux

    def is_root(self):
        return self.root

    def command_path(self, name):
        if name == "systemctl":
            return "/usr/bin/systemctl" if self.systemctl else None
        if name == "docker":
            return self.docker
        return None


class FakeCommandRunner:
    def __init__(self, unit_files="", returncodes=None):
        self.calls = []
        self.unit_files = unit_files
        self.returncodes = returncodes or {}

    def run(self, cmd, check=True, capture_output=False, **_kwargs):
        self.calls.append(list(cmd))
        stdout = self.unit_files if cmd[:2] == ["systemctl", "list-unit-files"] else ""
        return subprocess.CompletedProcess(
            cmd,
            self.returncodes.get(" ".join(cmd), 0),
            stdout=stdout,
            stderr="",
        )

    def systemctl_calls(self):
        return [" ".join(cmd) for cmd in self.calls if cmd[0] == "systemctl"]


def scripted(*answers):
    queue = list(answers)

    def _input(_question):
        return queue.pop(0)

    return _input


@pytest.fixture
def install_dir(tmp_path):
    directory = tmp_path / "checkend-ce"
    directory.mkdir()
    (directory / ".env").write_text("SECRET_KEY_BASE=abc\nPOSTGRES_PASSWORD=def\n", encoding="utf-8")
    (directory / "compose.yml").write_text("services: {}\n", encoding="utf-8")
    return directory


@pytest.fixture
def unit_dir(tmp_path):
    directory = tmp_path / "units"
    directory.mkdir()
    return directory


def build_installer(install_dir, unit_dir, *answers, host=None, runner=None):
    installer = ServiceInstaller(
        install_dir=str(install_dir),
        unit_dir=str(unit_dir),
        input_func=scripted(*answers),
    )
    installer.host_service = host or FakeHost()
    installer.command_runner = runner or FakeCommandRunner()
    return installer


def test_fresh_install_writes_enables_and_starts(install_dir, unit_dir):
    runner = FakeCommandRunner()
    installer = build_installer(install_dir, unit_dir, "", runner=runner)

    assert installer.run() == 0

    unit = (unit_dir / "checkend.service").read_text(encoding="utf-8")
    assert f"WorkingDirectory={install_dir}\n" in unit
    assert "ExecStart=/usr/bin/docker compose up -d --remove-orphans" in unit
    assert runner.systemctl_calls() == [
        "systemctl list-unit-files --no-legend --no-pager",
        "systemctl daemon-reload",
        "systemctl enable checkend",
        "systemctl start checkend",
    ]


def test_declining_start_still_enables(install_dir, unit_dir):
    runner = FakeCommandRunner()

    assert build_installer(install_dir, unit_dir, "n", runner=runner).run() == 0

    assert "systemctl enable checkend" in runner.systemctl_calls()
    assert "systemctl start checkend" not in runner.systemctl_calls()


def test_missing_configuration_is_fatal_without_registration(install_dir, unit_dir):
    (install_dir / ".env").unlink()
    runner = FakeCommandRunner()

    assert build_installer(install_dir, unit_dir, runner=runner).run() == 1

    assert runner.systemctl_calls() == []
    assert list(unit_dir.iterdir()) == []


def test_missing_compose_file_is_fatal(install_dir, unit_dir):
    (install_dir / "compose.yml").unlink()

    assert build_installer(install_dir, unit_dir).run() == 1


def test_legacy_compose_file_name_is_accepted(install_dir, unit_dir):
    (install_dir / "compose.yml").rename(install_dir / "docker-compose.yml")

    assert build_installer(install_dir, unit_dir, "").run() == 0


@pytest.mark.parametrize(
    "host",
    [
        FakeHost(linux=False),
        FakeHost(systemctl=False),
        FakeHost(root=False),
        FakeHost(docker=None),
    ],
)
def test_unmet_host_preconditions_are_fatal(install_dir, unit_dir, host):
    runner = FakeCommandRunner()

    assert build_installer(install_dir, unit_dir, host=host, runner=runner).run() == 1

    assert runner.systemctl_calls() == []


def test_declining_reinstall_touches_nothing(install_dir, unit_dir):
    existing_unit = unit_dir / "checkend.service"
    existing_unit.write_text("[Unit]\nDescription=previous\n", encoding="utf-8")
    runner = FakeCommandRunner(unit_files="checkend.service enabled enabled\n")

    assert build_installer(install_dir, unit_dir, "", runner=runner).run() == 0

    assert runner.systemctl_calls() == ["systemctl list-unit-files --no-legend --no-pager"]
    assert existing_unit.read_text(encoding="utf-8") == "[Unit]\nDescription=previous\n"


def test_reinstall_stops_and_disables_before_rewrite(install_dir, unit_dir):
    runner = FakeCommandRunner(
        unit_files="checkend.service enabled enabled\n",
        returncodes={"systemctl stop checkend": 5},
    )

    assert build_installer(install_dir, unit_dir, "y", "n", runner=runner).run() == 0

    assert runner.systemctl_calls() == [
        "systemctl list-unit-files --no-legend --no-pager",
        "systemctl stop checkend",
        "systemctl disable checkend",
        "systemctl daemon-reload",
        "systemctl enable checkend",
    ]
    assert "ExecStop=/usr/bin/docker compose down" in (unit_dir / "checkend.service").read_text(
        encoding="utf-8"
    )


def test_start_failure_is_fatal_and_keeps_enable(install_dir, unit_dir):
    runner = FakeCommandRunner(returncodes={"systemctl start checkend": 1})

    assert build_installer(install_dir, unit_dir, "y", runner=runner).run() == 1

    assert runner.systemctl_calls()[-2:] == ["systemctl enable checkend", "systemctl start checkend"]
    assert (unit_dir / "checkend.service").exists()


def test_bracketed_install_dir_is_printed_literally(tmp_path, unit_dir, monkeypatch):
    directory = tmp_path / "[bold]checkend"
    directory.mkdir()
    (directory / ".env").write_text("SECRET_KEY_BASE=abc\n", encoding="utf-8")
    (directory / "compose.yml").write_text("services: {}\n", encoding="utf-8")
    recording = Console(record=True, file=io.StringIO(), width=400)
    monkeypatch.setattr(service_installer_module, "console", recording)

    assert build_installer(directory, unit_dir, "n").run() == 0

    assert f"Installation directory: {directory}" in recording.export_text()
