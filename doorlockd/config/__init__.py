"""Configuration providers."""

from .provider import (
    APIConfig,
    ConfigProvider,
    DoorConfig,
    EnvConfigProvider,
    LDAPConfig,
    LogicConfig,
    NotifyConfig,
    YamlConfigProvider,
    get_config_provider,
)

__all__ = [
    "APIConfig",
    "ConfigProvider",
    "DoorConfig",
    "EnvConfigProvider",
    "LDAPConfig",
    "LogicConfig",
    "NotifyConfig",
    "YamlConfigProvider",
    "get_config_provider",
]
