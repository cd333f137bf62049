"""Static values shared across Checkend Setup."""

DEFAULT_REPO_URL = "https://github.com/Checkend/checkend.git"
DEFAULT_CHECKOUT_DIR = "checkend"
DEFAULT_SERVICE_NAME = "checkend"
DEFAULT_CONFIG_FILE = ".checkend-setup.yml"
DOCUMENTATION_URL = "https://github.com/checkend/community-edition"

ENV_FILE_NAME = ".env"
OVERRIDE_FILE_NAME = "compose.override.yml"
COMPOSE_FILE_NAMES = ("compose.yml", "docker-compose.yml")

SECRET_KEY_BASE_LENGTH = 128
POSTGRES_PASSWORD_LENGTH = 64

DOCKER_GROUP = "docker"
OS_RELEASE_PATH = "/etc/os-release"
APT_KEYRING_DIR = "/etc/apt/keyrings"
DOCKER_KEYRING_PATH = "/etc/apt/keyrings/docker.gpg"
DOCKER_APT_SOURCE_PATH = "/etc/apt/sources.list.d/docker.list"
DOCKER_DOWNLOAD_URL = "https://download.docker.com/linux"
SYSTEMD_UNIT_DIR = "/etc/systemd/system"
PUBLIC_IP_URL = "https://ifconfig.me/ip"

ENV_FILE_MODE = 0o600
UNIT_FILE_MODE = 0o644
