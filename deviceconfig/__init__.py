"""
deviceconfig — build and validate device ``config.json`` records.

From known inputs::

    import deviceconfig

    config = deviceconfig.generate(options, {"network": "ethernet"})
    deviceconfig.validate(config)

From the management API::

    client = deviceconfig.connect()          # session from ~/.resin/token
    config = deviceconfig.get_by_application(client, "MyApp", {
        "network":  "wifi",
        "wifiSsid": "foobar",
        "wifiKey":  "hello",
    })
    config = deviceconfig.get_by_device(client, "7cf02a6")

Endpoint URLs and the token location can be overridden with environment
variables; see :mod:`deviceconfig.settings`.
"""

from __future__ import annotations

from .api       import ManagementClient
from .config    import find_violations, generate, get_by_application, get_by_device, validate  # noqa: F401
from .core.auth import Session
from .errors    import (  # noqa: F401
    ApiError,
    ApplicationNotFound,
    ConfigValidationError,
    DeviceConfigError,
    DeviceNotFound,
    InvalidOptions,
    NotAuthenticated,
    SchemaViolation,
    UnrecognizedField,
)
from .settings  import Settings

__version__ = "0.1.0"


def connect(
    *,
    token:        str | None = None,
    api_url:      str | None = None,
    vpn_url:      str | None = None,
    registry_url: str | None = None,
    delta_url:    str | None = None,
    token_path:   str | None = None,
) -> ManagementClient:
    """
    Create a management API client.

    :param token:      Session token.  Defaults to ``$DEVICECONFIG_TOKEN`` or
                       the contents of the token file.
    :param api_url:    Management API base URL.
    :param vpn_url:    VPN hostname written to ``config.json``.
    :param registry_url: Image registry hostname written to ``config.json``.
    :param delta_url:  Delta server URL written to ``config.json``.
    :param token_path: Token file location (default ``~/.resin/token``).
    :returns:          A :class:`ManagementClient`; anonymous if no token is found.
    """
    settings = Settings.load(
        api_url=api_url,
        vpn_url=vpn_url,
        registry_url=registry_url,
        delta_url=delta_url,
        token_path=token_path,
    )
    session = Session(token) if token else Session.load(settings.token_path)
    return ManagementClient(settings, session)
