import subprocess

import pytest

from checkendsetup.errors import SetupError
from checkendsetup.models import ExecutionContext, OsRelease
from checkendsetup.services.docker_runtime import (
    DaemonError,
    DockerRuntimeService,
    classify_daemon_error,
    compose_command_for,
)


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeRunner:
    def __init__(self, returncodes=None, stdout=None, stderr=None):
        self.calls = []
        self.returncodes = returncodes or {}
        self.stdout = stdout or {}
        self.stderr = stderr or {}

    def __call__(self, cmd, check=True, capture_output=False, **kwargs):
        self.calls.append((list(cmd), kwargs))
        key = " ".join(cmd)
        return subprocess.CompletedProcess(
            cmd,
            self.returncodes.get(key, 0),
            stdout=self.stdout.get(key, ""),
            stderr=self.stderr.get(key, ""),
        )

    def commands(self):
        return [" ".join(cmd) for cmd, _ in self.calls]


class FakeHost:
    def __init__(self, paths):
        self.paths = paths

    def command_path(self, name):
        return self.paths.get(name)


class FakeResponse:
    text = "-----BEGIN PGP PUBLIC KEY BLOCK-----\n"

    def raise_for_status(self):
        return None


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self):
        self.urls = []

    def get(self, url, **_kwargs):
        self.urls.append(url)
        return FakeResponse()


def _service(runner, requests_module=None):
    return DockerRuntimeService(
        logger=DummyLogger(),
        console=DummyConsole(),
        run_cmd=runner,
        requests_module=requests_module or FakeRequestsModule(),
    )


@pytest.mark.parametrize(
    "error_text, expected",
    [
        (
            "permission denied while trying to connect to the Docker daemon socket",
            DaemonError.PERMISSION_DENIED,
        ),
        (
            "Cannot connect to the Docker daemon at unix:///var/run/docker.sock. "
            "Is the docker daemon running?",
            DaemonError.DAEMON_DOWN,
        ),
        ("Is the Docker daemon running?", DaemonError.DAEMON_DOWN),
        ("error during connect: context deadline exceeded", DaemonError.OTHER),
        ("", DaemonError.OTHER),
    ],
)
def test_classify_daemon_error(error_text, expected):
    assert classify_daemon_error(error_text) == expected


def test_compose_command_for_sudo_context():
    assert compose_command_for(ExecutionContext()) == ["docker", "compose"]
    assert compose_command_for(ExecutionContext(use_sudo=True)) == ["sudo", "docker", "compose"]


def test_probe_daemon_returns_error_text_and_threads_sudo_flag():
    runner = FakeRunner(
        returncodes={"docker info": 1},
        stderr={"docker info": "permission denied while trying to connect"},
    )
    service = _service(runner)

    ok, error_text = service.probe_daemon(ExecutionContext(use_sudo=True))

    assert ok is False
    assert "permission denied" in error_text
    assert runner.calls[0][1]["elevate"] is True


def test_has_compose_plugin():
    assert _service(FakeRunner()).has_compose_plugin(ExecutionContext()) is True
    missing = FakeRunner(returncodes={"docker compose version": 1})
    assert _service(missing).has_compose_plugin(ExecutionContext()) is False


def test_unit_compose_command_prefers_native_plugin():
    service = _service(FakeRunner())
    host = FakeHost({"docker": "/usr/bin/docker", "docker-compose": "/usr/local/bin/docker-compose"})

    assert service.resolve_unit_compose_command(host) == ["/usr/bin/docker", "compose"]


def test_unit_compose_command_falls_back_to_standalone_binary():
    runner = FakeRunner(returncodes={"/usr/bin/docker compose version": 1})
    host = FakeHost({"docker": "/usr/bin/docker", "docker-compose": "/usr/local/bin/docker-compose"})

    assert _service(runner).resolve_unit_compose_command(host) == ["/usr/local/bin/docker-compose"]


def test_unit_compose_command_requires_docker_and_compose():
    with pytest.raises(SetupError, match="Docker is not installed"):
        _service(FakeRunner()).resolve_unit_compose_command(FakeHost({}))

    runner = FakeRunner(returncodes={"/usr/bin/docker compose version": 1})
    with pytest.raises(SetupError, match="Docker Compose is not installed"):
        _service(runner).resolve_unit_compose_command(FakeHost({"docker": "/usr/bin/docker"}))


def test_install_docker_configures_apt_repository_and_starts_daemon():
    runner = FakeRunner(stdout={"dpkg --print-architecture": "amd64\n"})
    requests_module = FakeRequestsModule()
    service = _service(runner, requests_module)

    service.install_docker(OsRelease(id="debian", version_codename="bookworm"))

    commands = runner.commands()
    assert requests_module.urls == ["https://download.docker.com/linux/debian/gpg"]
    assert commands[0].startswith("apt-get remove -y docker")
    assert "gpg --batch --yes --dearmor -o /etc/apt/keyrings/docker.gpg" in commands
    assert commands[-2:] == ["systemctl start docker", "systemctl enable docker"]
    assert any(cmd.startswith("apt-get install -y docker-ce docker-ce-cli") for cmd in commands)

    tee_kwargs = [kwargs for cmd, kwargs in runner.calls if cmd[0] == "tee"][0]
    assert tee_kwargs["input_text"] == (
        "deb [arch=amd64 signed-by=/etc/apt/keyrings/docker.gpg] "
        "https://download.docker.com/linux/debian bookworm stable\n"
    )
    assert all(
        kwargs.get("elevate") for cmd, kwargs in runner.calls if cmd[0] in {"apt-get", "systemctl"}
    )


def test_install_docker_requires_codename():
    runner = FakeRunner(stdout={"dpkg --print-architecture": "amd64\n"})

    with pytest.raises(SetupError, match="codename"):
        _service(runner).install_docker(OsRelease(id="ubuntu"))


def test_gpg_key_download_failure_is_fatal():
    class FailingRequestsModule(FakeRequestsModule):
        def get(self, url, **_kwargs):
            raise self.RequestException("connection reset")

    service = _service(FakeRunner(), FailingRequestsModule())

    with pytest.raises(SetupError, match="connection reset"):
        service.fetch_gpg_key("ubuntu")


def test_add_user_to_group_uses_usermod_with_sudo():
    runner = FakeRunner()

    _service(runner).add_user_to_group("deploy")

    cmd, kwargs = runner.calls[0]
    assert cmd == ["usermod", "-aG", "docker", "deploy"]
    assert kwargs["elevate"] is True


class CheckingRunner:
    """Raises like CommandRunner for commands listed as failing."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def __call__(self, cmd, check=True, capture_output=False, **kwargs):
        self.calls.append((list(cmd), kwargs))
        if " ".join(cmd) in self.failing:
            raise SetupError(f"Command failed (1): {' '.join(cmd)}")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def test_get_docker_compose_cmd_prefers_plugin():
    runner = CheckingRunner()

    assert _service(runner).get_docker_compose_cmd() == ["docker", "compose"]
    assert len(runner.calls) == 1


def test_get_docker_compose_cmd_falls_back_to_standalone():
    runner = CheckingRunner(failing={"docker compose version"})

    assert _service(runner).get_docker_compose_cmd() == ["docker-compose"]
    assert runner.calls[1][0] == ["docker-compose", "--version"]


def test_get_docker_compose_cmd_without_any_compose_fails():
    runner = CheckingRunner(failing={"docker compose version", "docker-compose --version"})

    with pytest.raises(SetupError, match="Docker Compose"):
        _service(runner).get_docker_compose_cmd()


def test_get_docker_compose_cmd_threads_sudo_flag():
    runner = CheckingRunner()

    _service(runner).get_docker_compose_cmd(ExecutionContext(use_sudo=True))

    assert runner.calls[0][1]["elevate"] is True


def test_compose_command_for_prefixes_detected_command():
    ctx = ExecutionContext(use_sudo=True)

    assert compose_command_for(ctx, ["docker-compose"]) == ["sudo", "docker-compose"]
