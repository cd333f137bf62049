"""Configuration loader for Checkend Setup."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from checkendsetup.errors import SetupError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    PATH_KEYS = {"install_dir", "checkout_dir", "log_file"}
    TEXT_KEYS = {"repo_url", "service_name"}
    FLAG_KEYS = {"verbose"}
    SUPPORTED_KEYS = PATH_KEYS | TEXT_KEYS | FLAG_KEYS

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise SetupError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise SetupError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise SetupError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(str(key) for key in set(parsed) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise SetupError(f"Unknown configuration keys: {unknown_list}")

        return {key: self._validate(key, value) for key, value in parsed.items()}

    def _validate(self, key: str, value: Any) -> Any:
        if key in self.FLAG_KEYS:
            if not isinstance(value, bool):
                raise SetupError(f"Configuration key '{key}' must be true or false.")
            return value

        if not isinstance(value, str) or not value.strip():
            raise SetupError(f"Configuration key '{key}' must be a non-empty string.")
        if key in self.PATH_KEYS:
            return os.path.expanduser(value.strip())
        return value.strip()
