"""
Network configuration files embedded in ``config.json``.

The device agent writes each entry of ``files`` to its boot partition; both
are connman configuration files.
"""

from __future__ import annotations

from typing import Any

from .errors import InvalidOptions

SETTINGS_FILE = "network/settings"
NETWORK_FILE  = "network/network.config"

NAMESERVERS = "8.8.8.8,8.8.4.4"

MAIN_SETTINGS = """\
[global]
OfflineMode=false

[WiFi]
Enable=true
Tethering=false

[Wired]
Enable=true
Tethering=false

[Bluetooth]
Enable=true
Tethering=false
"""


def get_home_settings(options: dict[str, Any]) -> str:
    """Return the connman service config for the ``home`` network.

    An ethernet service is always declared; a hidden wifi service is added
    when ``wifiSsid`` is set.
    """
    sections = [
        "[service_home_ethernet]\n"
        "Type = ethernet\n"
        f"Nameservers = {NAMESERVERS}\n"
    ]

    ssid = (options.get("wifiSsid") or "").strip()
    if ssid:
        lines = [
            "[service_home_wifi]",
            "Hidden = true",
            "Type = wifi",
            f"Name = {ssid}",
        ]
        key = (options.get("wifiKey") or "").strip()
        if key:
            lines.append(f"Passphrase = {key}")
        lines.append(f"Nameservers = {NAMESERVERS}")
        sections.append("\n".join(lines) + "\n")

    return "\n".join(sections)


def get_files(options: dict[str, Any] | None = None) -> dict[str, str]:
    """
    Get the network configuration files.

    Usage::

        files = get_files({"wifiSsid": "foobar", "wifiKey": "hello"})

    :raises InvalidOptions: If *options* is not a plain dict.
    """
    if options is None:
        options = {}
    if not isinstance(options, dict):
        raise InvalidOptions(f"Invalid options: {options!r}")
    return {
        SETTINGS_FILE: MAIN_SETTINGS,
        NETWORK_FILE:  get_home_settings(options),
    }
