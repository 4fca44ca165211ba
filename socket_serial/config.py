from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, NamedTuple, Union

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

_logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "socket_serial.toml"


class PortConfig(NamedTuple):
    baudrate: int = 9600
    timeout: float = 1.0
    max_read: int = 4096
    encoding: str = "utf-8"


def load_config(config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from a TOML file; a missing or broken file yields {}."""
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        _logger.debug("Config file %s not found, using defaults", config_path)
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        _logger.warning("Failed to parse config %s: %s. Using defaults.", config_path, e)
        return {}


def get_port_config(config: Dict[str, Any]) -> PortConfig:
    """Extract the [port] table, falling back to defaults for missing keys."""
    port_cfg = config.get("port", {})
    defaults = PortConfig()
    return PortConfig(
        baudrate=int(port_cfg.get("baudrate", defaults.baudrate)),
        timeout=float(port_cfg.get("timeout", defaults.timeout)),
        max_read=int(port_cfg.get("max_read", defaults.max_read)),
        encoding=str(port_cfg.get("encoding", defaults.encoding)),
    )
