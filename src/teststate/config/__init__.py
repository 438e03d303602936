"""Configuration file support for teststate."""

from teststate.config.loader import (
    ConfigLoader,
    ConsistencyMode,
    FileConfig,
    StoreConfig,
    load_config,
)

__all__ = [
    "ConfigLoader",
    "ConsistencyMode",
    "FileConfig",
    "StoreConfig",
    "load_config",
]
