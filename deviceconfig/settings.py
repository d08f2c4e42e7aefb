"""
Client settings: management API and service endpoint locations.

Each value is resolved from an explicit argument, then an environment
variable, then a built-in default::

    DEVICECONFIG_API_URL=https://api.example.com
    DEVICECONFIG_VPN_URL=vpn.example.com
    DEVICECONFIG_REGISTRY_URL=registry.example.com
    DEVICECONFIG_DELTA_URL=https://delta.example.com
    DEVICECONFIG_TOKEN_PATH=/run/secrets/session-token
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_API_URL      = "https://api.resin.io"
DEFAULT_VPN_URL      = "vpn.resin.io"
DEFAULT_REGISTRY_URL = "registry.resin.io"
DEFAULT_DELTA_URL    = "https://delta.resin.io"
DEFAULT_TOKEN_PATH   = os.path.join("~", ".resin", "token")

# camelCase names used by ManagementClient.get_setting → attribute
_SETTING_KEYS = {
    "apiUrl":      "api_url",
    "vpnUrl":      "vpn_url",
    "registryUrl": "registry_url",
    "deltaUrl":    "delta_url",
}


def _resolve(explicit: str | None, env_var: str, default: str) -> str:
    if explicit:
        return explicit.rstrip("/")
    from_env = os.environ.get(env_var, "").strip()
    if from_env:
        return from_env.rstrip("/")
    return default.rstrip("/")


@dataclass(frozen=True)
class Settings:
    api_url:      str = DEFAULT_API_URL
    vpn_url:      str = DEFAULT_VPN_URL
    registry_url: str = DEFAULT_REGISTRY_URL
    delta_url:    str = DEFAULT_DELTA_URL
    token_path:   str = DEFAULT_TOKEN_PATH

    @classmethod
    def load(
        cls,
        *,
        api_url:      str | None = None,
        vpn_url:      str | None = None,
        registry_url: str | None = None,
        delta_url:    str | None = None,
        token_path:   str | None = None,
    ) -> "Settings":
        """Build settings from explicit values, the environment, and defaults."""
        return cls(
            api_url      = _resolve(api_url,      "DEVICECONFIG_API_URL",      DEFAULT_API_URL),
            vpn_url      = _resolve(vpn_url,      "DEVICECONFIG_VPN_URL",      DEFAULT_VPN_URL),
            registry_url = _resolve(registry_url, "DEVICECONFIG_REGISTRY_URL", DEFAULT_REGISTRY_URL),
            delta_url    = _resolve(delta_url,    "DEVICECONFIG_DELTA_URL",    DEFAULT_DELTA_URL),
            token_path   = os.path.expanduser(
                _resolve(token_path, "DEVICECONFIG_TOKEN_PATH", DEFAULT_TOKEN_PATH)
            ),
        )

    def get(self, key: str) -> str:
        """Return a setting by its camelCase name, e.g. ``"apiUrl"``."""
        try:
            return getattr(self, _SETTING_KEYS[key])
        except KeyError:
            raise KeyError(f"Unknown setting: {key}") from None
