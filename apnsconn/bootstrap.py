from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from apnsconn.core.config.yaml_config import AppConfig, load_app_config
from apnsconn.runtime.connection_actor import ClientFactory, TerminateCallback
from apnsconn.services.registry import ConnectionRegistry


@dataclass(frozen=True)
class AppWiring:
    """Everything a caller needs to push notifications."""
    config: AppConfig
    registry: ConnectionRegistry


def build_app_system(
    config_path: Optional[str] = None,
    on_terminate: Optional[TerminateCallback] = None,
    client_factory: Optional[ClientFactory] = None,
) -> AppWiring:
    """
    Load configuration and build an empty connection registry.

    Connections are not opened here; call
    ``wiring.registry.connect(wiring.config.connection, name=...)``.
    """
    cfg = load_app_config(config_path)
    registry = ConnectionRegistry(on_terminate=on_terminate, client_factory=client_factory)
    return AppWiring(config=cfg, registry=registry)
