import pytest

from checkendsetup.errors import SetupError
from checkendsetup.services.config_loader import ConfigLoader


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".checkend-setup.yml"
    config_file.write_text(
        "install_dir: /opt/checkend\nservice_name: checkend-staging\nverbose: true\n",
        encoding="utf-8",
    )

    loader = ConfigLoader()
    loaded = loader.load(str(config_file))

    assert loaded["install_dir"] == "/opt/checkend"
    assert loaded["service_name"] == "checkend-staging"
    assert loaded["verbose"] is True


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".checkend-setup.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")

    loader = ConfigLoader()

    with pytest.raises(SetupError, match="Unknown configuration keys"):
        loader.load(str(config_file))


def test_config_loader_rejects_non_mapping_root(tmp_path):
    config_file = tmp_path / ".checkend-setup.yml"
    config_file.write_text("- install_dir\n", encoding="utf-8")

    with pytest.raises(SetupError, match="YAML mapping"):
        ConfigLoader().load(str(config_file))


def test_config_loader_without_path_returns_empty():
    assert ConfigLoader().load(None) == {}


@pytest.mark.parametrize(
    "content, message",
    [
        ("verbose: yes please\n", "'verbose' must be true or false"),
        ("service_name: 42\n", "'service_name' must be a non-empty string"),
        ("install_dir: ''\n", "'install_dir' must be a non-empty string"),
    ],
)
def test_config_loader_rejects_wrongly_typed_values(tmp_path, content, message):
    config_file = tmp_path / ".checkend-setup.yml"
    config_file.write_text(content, encoding="utf-8")

    with pytest.raises(SetupError, match=message):
        ConfigLoader().load(str(config_file))


def test_config_loader_expands_home_in_paths(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    config_file = tmp_path / ".checkend-setup.yml"
    config_file.write_text("install_dir: ~/checkend\nrepo_url: ' https://example.com/c.git '\n", encoding="utf-8")

    loaded = ConfigLoader().load(str(config_file))

    assert loaded["install_dir"] == str(tmp_path / "checkend")
    assert loaded["repo_url"] == "https://example.com/c.git"
