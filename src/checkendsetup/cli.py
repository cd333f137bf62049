import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_CHECKOUT_DIR,
    DEFAULT_CONFIG_FILE,
    DEFAULT_REPO_URL,
    DEFAULT_SERVICE_NAME,
)
from .errors import SetupError
from .provisioner import Provisioner
from .service_installer import ServiceInstaller
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def _load_config(config):
    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        return ConfigLoader().load(resolved_config)
    except SetupError as exc:
        raise click.ClickException(str(exc)) from exc


def _configure_logging(verbose: bool, log_file):
    logger = logging.getLogger("checkendsetup")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


config_option = click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
install_dir_option = click.option(
    "--install-dir",
    required=False,
    type=click.Path(file_okay=False),
    help="Directory holding compose.yml, .env and the Checkend checkout (default: current directory).",
)
verbose_option = click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
log_file_option = click.option("--log-file", type=click.Path(), help="Path to log file")


@click.command()
@config_option
@install_dir_option
@verbose_option
@log_file_option
def setup_main(config, install_dir, verbose, log_file):
    """Check Docker, fetch Checkend and generate its configuration."""
    config_values = _load_config(config)

    install_dir = _resolve_option(install_dir, config_values, "install_dir")
    repo_url = _resolve_option(None, config_values, "repo_url", default=DEFAULT_REPO_URL)
    checkout_dir = _resolve_option(None, config_values, "checkout_dir", default=DEFAULT_CHECKOUT_DIR)
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    _configure_logging(verbose, log_file)

    provisioner = Provisioner(
        install_dir=install_dir,
        repo_url=repo_url,
        checkout_dir=checkout_dir,
    )
    raise SystemExit(provisioner.run())


@click.command()
@config_option
@install_dir_option
@verbose_option
@log_file_option
def install_service_main(config, install_dir, verbose, log_file):
    """Register the Checkend Compose stack as a systemd service."""
    config_values = _load_config(config)

    install_dir = _resolve_option(install_dir, config_values, "install_dir")
    service_name = _resolve_option(None, config_values, "service_name", default=DEFAULT_SERVICE_NAME)
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    _configure_logging(verbose, log_file)

    installer = ServiceInstaller(install_dir=install_dir, service_name=service_name)
    raise SystemExit(installer.run())


if __name__ == "__main__":
    setup_main()
