from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from apnsconn.domain.models import ConnectionConfig
from apnsconn.errors import ConfigError
from apnsconn.transport.client_config import CERT_FILE, HOST, PORT, TIMEOUT_S

CONFIG_ENV_VAR = "APNS_CONFIG"


@dataclass(frozen=True)
class AppConfig:
    """
    Root configuration loaded from YAML.

    Attributes
    ----------
    connection
        Gateway connection parameters.
    source
        File the configuration was read from.
    """
    connection: ConnectionConfig
    source: Optional[Path] = None


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: config must contain a YAML mapping at the root")
    return data


def _resolve_default_config_path() -> Path:
    """
    Resolve config.yaml location.

    Priority:
    1) APNS_CONFIG env var if provided
    2) ./config.yaml in current working directory
    """
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser().resolve()
    return Path("config.yaml").resolve()


def _seed_bytes(value: Any) -> Optional[bytes]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def parse_connection_config(raw: Dict[str, Any]) -> ConnectionConfig:
    """
    Convert the ``connection`` mapping into a :class:`ConnectionConfig`.

    Missing fields take the module defaults.

    Raises
    ------
    ConfigError
        If a field has the wrong type.
    """
    if not isinstance(raw, dict):
        raise ConfigError("'connection' must be a mapping")
    try:
        key_file = raw.get("key_file")
        return ConnectionConfig(
            host=str(raw.get("host", HOST)),
            port=int(raw.get("port", PORT)),
            cert_file=str(raw.get("cert_file", CERT_FILE)),
            timeout_s=float(raw.get("timeout_s", TIMEOUT_S)),
            ssl_seed=_seed_bytes(raw.get("ssl_seed")),
            key_file=str(key_file) if key_file is not None else None,
            verify_tls=bool(raw.get("verify_tls", True)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid connection settings: {e}") from e


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from YAML and convert it into typed config objects.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Returns
    -------
    AppConfig
        Parsed configuration.

    Raises
    ------
    FileNotFoundError
        If the config file does not exist.
    ConfigError
        If the file is not a mapping or a field is invalid.
    """
    cfg_path = Path(path).expanduser().resolve() if path else _resolve_default_config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    raw = _read_yaml(cfg_path)
    connection = parse_connection_config(raw.get("connection") or {})
    return AppConfig(connection=connection, source=cfg_path)
