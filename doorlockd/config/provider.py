"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import yaml

from ..modules.auth.interfaces import IdentityTemplate

ENV_PREFIX = "DOORLOCKD_"


@dataclass
class LogicConfig:
    """Token and request handling configuration."""
    token_timeout: float
    web_prefix: str

    def __post_init__(self):
        if self.token_timeout <= 0:
            raise ValueError(f"token_timeout must be positive, got {self.token_timeout}")


@dataclass
class LDAPConfig:
    """Credential service configuration."""
    uri: Optional[str]
    bind_template: str
    timeout: float = 5.0
    escape_username: bool = False
    static_users: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Fail at startup rather than on the first request
        IdentityTemplate(self.bind_template)

    @property
    def identity_template(self) -> IdentityTemplate:
        return IdentityTemplate(self.bind_template, escape_username=self.escape_username)


@dataclass
class DoorConfig:
    """Door actuator configuration."""
    serial_device: Optional[str]
    baudrate: int = 9600
    lock_command: str = "l"
    unlock_command: str = "u"


@dataclass
class NotifyConfig:
    """Token display configuration."""
    redis_url: Optional[str] = None
    redis_channel: str = "doorlockd:token"
    qr_path: Optional[str] = None
    async_notify: bool = True


@dataclass
class APIConfig:
    """API configuration."""
    host: str
    port: int
    log_level: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_logic_config(self) -> LogicConfig:
        ...

    def get_ldap_config(self) -> LDAPConfig:
        ...

    def get_door_config(self) -> DoorConfig:
        ...

    def get_notify_config(self) -> NotifyConfig:
        ...

    def get_api_config(self) -> APIConfig:
        ...


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() == "true"


def _parse_users(value: Any) -> Dict[str, str]:
    """Parse ``user:password,user:password`` or a mapping."""
    if not value:
        return {}
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items()}

    users = {}
    for entry in str(value).split(","):
        entry = entry.strip()
        if not entry:
            continue
        if ":" not in entry:
            raise ValueError(f"Static user entry must have the form user:password, got {entry!r}")
        user, password = entry.split(":", 1)
        users[user.strip()] = password
    return users


class _SettingsConfigProvider:
    """Builds the typed configs from a flat key lookup."""

    def _get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def get_logic_config(self) -> LogicConfig:
        return LogicConfig(
            token_timeout=float(self._get("token_timeout", 60)),
            web_prefix=self._get("web_prefix", "https://localhost/"),
        )

    def get_ldap_config(self) -> LDAPConfig:
        return LDAPConfig(
            uri=self._get("ldap_uri") or None,
            bind_template=self._get("bind_template", "%s"),
            timeout=float(self._get("ldap_timeout", 5)),
            escape_username=_as_bool(self._get("ldap_escape_username", False)),
            static_users=_parse_users(self._get("static_users")),
        )

    def get_door_config(self) -> DoorConfig:
        return DoorConfig(
            serial_device=self._get("serial_device") or None,
            baudrate=int(self._get("baudrate", 9600)),
            lock_command=self._get("lock_command", "l"),
            unlock_command=self._get("unlock_command", "u"),
        )

    def get_notify_config(self) -> NotifyConfig:
        return NotifyConfig(
            redis_url=self._get("redis_url") or None,
            redis_channel=self._get("redis_channel", "doorlockd:token"),
            qr_path=self._get("qr_path") or None,
            async_notify=_as_bool(self._get("async_notify", True)),
        )

    def get_api_config(self) -> APIConfig:
        return APIConfig(
            host=self._get("host", "0.0.0.0"),
            port=int(self._get("port", 8080)),
            log_level=str(self._get("log_level", "INFO")).upper(),
        )


class EnvConfigProvider(_SettingsConfigProvider):
    """
    Environment-based configuration provider.

    Every key is read from ``DOORLOCKD_<KEY>``, e.g. DOORLOCKD_TOKEN_TIMEOUT.
    """

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def _get(self, key: str, default: Any = None) -> Any:
        return self.environ.get(ENV_PREFIX + key.upper(), default)


class YamlConfigProvider(EnvConfigProvider):
    """
    YAML file configuration provider.

    The file holds the same keys in lowercase (``token_timeout: 60``).
    Environment variables override values from the file.
    """

    def __init__(self, path: str, environ: Optional[Dict[str, str]] = None):
        super().__init__(environ)
        self.path = Path(path)

        with open(self.path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {self.path} must contain a mapping")

        self.values: Dict[str, Any] = {str(k).lower(): v for k, v in data.items()}

    def _get(self, key: str, default: Any = None) -> Any:
        value = super()._get(key)
        if value is not None:
            return value
        return self.values.get(key, default)


def get_config_provider(config_path: Optional[str] = None) -> ConfigProvider:
    """
    Select the configuration provider.

    Args:
        config_path: YAML file; falls back to DOORLOCKD_CONFIG

    Returns:
        YamlConfigProvider if a file is given, EnvConfigProvider otherwise
    """
    config_path = config_path or os.getenv(ENV_PREFIX + "CONFIG")
    if config_path:
        return YamlConfigProvider(config_path)
    return EnvConfigProvider()
