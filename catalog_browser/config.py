from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml
from dotenv import load_dotenv

load_dotenv()

CONFIG_ENV_KEY = "CATALOG_CONFIG"
DEFAULT_BOOTSTRAP_PATH = Path(__file__).resolve().parent / "bootstrap_data.yaml"

# Environment variable -> settings key in the optional YAML file.
_ENV_KEYS: Mapping[str, str] = {
    "CATALOG_SOURCE": "source",
    "CATALOG_DATA_DIR": "data_dir",
    "CATALOG_STORAGE_PATH": "storage_path",
    "CATALOG_BOOTSTRAP_PATH": "bootstrap_path",
    "CATALOG_LOG_LEVEL": "log_level",
}


class ConfigError(ValueError):
    """Raised when the settings file is invalid."""


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on", "csv"}


def _parse_path(value: Any, default: Path, base: Path | None = None) -> Path:
    if value in (None, ""):
        return default
    path = Path(str(value)).expanduser()
    if base is not None and not path.is_absolute():
        path = base / path
    return path


@dataclass
class Settings:
    use_external: bool = False
    data_dir: Path = Path("./data")
    storage_path: Path = Path("./catalog_storage.json")
    bootstrap_path: Path = DEFAULT_BOOTSTRAP_PATH
    log_level: str = "INFO"


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of settings.")
    return data


def load_settings(config_path: Path | str | None = None) -> Settings:
    """
    Build settings from an optional YAML file overlaid with environment variables.

    `source: csv` (or CATALOG_SOURCE=csv) turns on loading the CSV exports from
    `data_dir`. Relative paths in the YAML file resolve from the file's folder.
    """

    if config_path is None and os.getenv(CONFIG_ENV_KEY):
        config_path = os.environ[CONFIG_ENV_KEY]

    raw: Dict[str, Any] = {}
    base: Path | None = None
    if config_path is not None:
        path = Path(config_path).expanduser()
        raw = _read_config_file(path)
        base = path.resolve().parent

    from_env: set[str] = set()
    for env_key, key in _ENV_KEYS.items():
        value = os.getenv(env_key)
        if value is not None:
            raw[key] = value
            from_env.add(key)

    def path_setting(key: str, default: Path) -> Path:
        return _parse_path(raw.get(key), default, None if key in from_env else base)

    defaults = Settings()
    source = raw.get("source")
    return Settings(
        use_external=_parse_bool(source, defaults.use_external),
        data_dir=path_setting("data_dir", defaults.data_dir),
        storage_path=path_setting("storage_path", defaults.storage_path),
        bootstrap_path=path_setting("bootstrap_path", defaults.bootstrap_path),
        log_level=str(raw.get("log_level") or defaults.log_level).upper(),
    )
