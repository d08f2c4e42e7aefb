"""
ManagementClient — read access to the device management API.

Not constructed directly in most code; use ``deviceconfig.connect()``.
"""

from __future__ import annotations

import logging
from typing import Any

from .core.auth      import Session
from .core.transport import get_json, post_json
from .errors         import ApplicationNotFound, DeviceNotFound, NotAuthenticated
from .settings       import Settings

logger = logging.getLogger("deviceconfig")


def _odata_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class ManagementClient:
    """
    Thin client over the management API's resource and config endpoints.

    :param settings: Endpoint locations.
    :param session:  Logged-in session, or ``None`` when nobody is logged in.
                     Anonymous clients can still read settings and the public
                     ``/config`` document.
    """

    def __init__(self, settings: Settings, session: Session | None = None) -> None:
        self.settings = settings
        self.session  = session
        self._api_url = settings.api_url.rstrip("/")

    # ── Applications ──────────────────────────────────────────────────────────

    def get_application(self, name: str) -> dict:
        """Return the application called *name*.

        :raises ApplicationNotFound: If no such application is visible.
        """
        logger.debug("Fetching application %s", name)
        resp = get_json(
            f"{self._api_url}/v1/application",
            self._auth_headers(),
            {"$filter": f"app_name eq {_odata_string(name)}"},
        )
        apps = resp.get("d", [])
        if not apps:
            raise ApplicationNotFound(name)
        return apps[0]

    def get_api_key(self, name: str) -> str:
        """Generate a provisioning API key for the application called *name*."""
        app = self.get_application(name)
        return post_json(
            f"{self._api_url}/application/{app['id']}/generate-api-key",
            headers=self._auth_headers(),
        )

    # ── Devices ───────────────────────────────────────────────────────────────

    def get_device(self, uuid: str) -> dict:
        """Return the device with *uuid*, with its owning ``application_name``.

        :raises DeviceNotFound: If no such device is visible.
        """
        logger.debug("Fetching device %s", uuid)
        resp = get_json(
            f"{self._api_url}/v1/device",
            self._auth_headers(),
            {"$filter": f"uuid eq {_odata_string(uuid)}", "$expand": "application"},
        )
        devices = resp.get("d", [])
        if not devices:
            raise DeviceNotFound(uuid)
        device = dict(devices[0])
        application = device.pop("application", None)
        if isinstance(application, list):
            application = application[0] if application else None
        if application:
            device["application_name"] = application["app_name"]
        return device

    # ── Current user ──────────────────────────────────────────────────────────

    def get_user_id(self) -> int:
        if self.session is None:
            raise NotAuthenticated()
        return self.session.user_id

    def whoami(self) -> str | None:
        """Return the logged-in username, or ``None`` when nobody is logged in."""
        if self.session is None:
            return None
        return self.session.username

    # ── Settings and service keys ─────────────────────────────────────────────

    def get_setting(self, key: str) -> str:
        """Return a setting by name: ``apiUrl``, ``vpnUrl``, ``registryUrl``, ``deltaUrl``."""
        return self.settings.get(key)

    def get_config(self) -> dict[str, Any]:
        """Return the API's public configuration document."""
        return get_json(f"{self._api_url}/config")

    def get_pubnub_keys(self) -> dict[str, str]:
        return self.get_config()["pubnub"]

    def get_mixpanel_token(self) -> str:
        return self.get_config()["mixpanelToken"]

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _auth_headers(self) -> dict[str, str]:
        if self.session is None:
            raise NotAuthenticated()
        return self.session.headers()
