"""
Generate and validate device configuration records (``config.json``).

Usage::

    from deviceconfig import generate

    config = generate(
        {
            "application": {"app_name": "HelloWorldApp", "id": 18,
                            "device_type": "raspberry-pi"},
            "user":        {"id": 7, "username": "johndoe"},
            "pubnub":      {"subscribe_key": "demo", "publish_key": "demo"},
            "mixpanel":    {"token": "e3bc4100330c35722740fb8c6f5abddc"},
            "apiKey":      "asdf",
            "vpnPort":     1723,
            "endpoints":   {"api": "https://api.resin.io",
                            "vpn": "vpn.resin.io",
                            "registry": "registry.resin.io"},
        },
        {"network": "ethernet", "appUpdatePollInterval": 50000},
    )

``generate`` and ``validate`` are pure and do not log.  The ``get_by_*``
helpers resolve their inputs through a :class:`~deviceconfig.api.ManagementClient`.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel, ValidationError

from . import network
from .core.transport import prune_pool
from .errors import ConfigValidationError, NotAuthenticated, SchemaViolation, UnrecognizedField
from .schema import (
    DEFAULT_APP_UPDATE_POLL_INTERVAL,
    DEFAULT_VPN_PORT,
    LISTEN_PORT,
    DeviceConfigSchema,
)

if TYPE_CHECKING:
    from .api import ManagementClient

logger = logging.getLogger("deviceconfig")

# pydantic error type → reason text
_REASONS = {
    "missing": "is required",
}


def _reason(err: dict[str, Any], schema: type[BaseModel]) -> str:
    # None in a required field is reported like an absent key.
    field = schema.model_fields.get(str(err["loc"][0])) if err["loc"] else None
    if err.get("input") is None and field is not None and field.is_required():
        return "is required"
    return _REASONS.get(err["type"], err["msg"])


def generate(options: dict[str, Any], params: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Generate a basic config.json record.

    :param options: ``application``, ``user``, ``pubnub``, ``mixpanel``,
                    ``apiKey`` and ``endpoints``, plus an optional ``vpnPort``.
                    Not modified.
    :param params:  User network options: ``network`` (``"ethernet"`` or
                    ``"wifi"``), ``wifiSsid``, ``wifiKey``,
                    ``appUpdatePollInterval``.
    :returns:       A new, validated record.
    :raises ConfigValidationError: If the record does not validate.
    """
    if params is None:
        params = {}
    options = {"vpnPort": DEFAULT_VPN_PORT, **options}

    # Missing leaves project to None and are reported by validate(); a missing
    # or non-dict sub-object fails here.
    application = options["application"]
    user        = options["user"]
    endpoints   = options["endpoints"]
    pubnub      = options["pubnub"]
    mixpanel    = options["mixpanel"]

    config = {
        "applicationName":       application.get("app_name"),
        "applicationId":         application.get("id"),
        "deviceType":            application.get("device_type"),
        "userId":                user.get("id"),
        "username":              user.get("username"),
        "files":                 network.get_files(params),
        # A falsy interval (None, 0) falls back to the default.
        "appUpdatePollInterval": params.get("appUpdatePollInterval") or DEFAULT_APP_UPDATE_POLL_INTERVAL,
        "listenPort":            LISTEN_PORT,
        "vpnPort":               options["vpnPort"],
        "apiEndpoint":           endpoints.get("api"),
        "vpnEndpoint":           endpoints.get("vpn"),
        "registryEndpoint":      endpoints.get("registry"),
        "deltaEndpoint":         endpoints.get("delta"),
        "pubnubSubscribeKey":    pubnub.get("subscribe_key"),
        "pubnubPublishKey":      pubnub.get("publish_key"),
        "mixpanelToken":         mixpanel.get("token"),
        "apiKey":                options.get("apiKey"),
    }

    # Missing credentials are left as None for validate() to reject.
    if params.get("network") == "wifi":
        config["wifiSsid"] = params.get("wifiSsid")
        config["wifiKey"]  = params.get("wifiKey")

    validate(config)
    return config


def find_violations(
    config: dict[str, Any],
    schema: type[BaseModel] = DeviceConfigSchema,
) -> list[ConfigValidationError]:
    """
    Return every validation error of *config*, in reporting order.

    Schema violations come first, in the schema's field order.  Unrecognized
    keys are only reported for records that otherwise conform.
    """
    try:
        schema.model_validate(config)
    except ValidationError as e:
        return [
            SchemaViolation(
                ".".join(str(part) for part in err["loc"]),
                _reason(err, schema),
            )
            for err in e.errors()
        ]

    return [
        UnrecognizedField(key)
        for key in config
        if key not in schema.model_fields
    ]


def validate(
    config: dict[str, Any],
    schema: type[BaseModel] = DeviceConfigSchema,
) -> None:
    """
    Validate a generated config.json record.

    Only the first problem is raised; use :func:`find_violations` to see all.

    :raises SchemaViolation:   On the first missing or invalid field.
    :raises UnrecognizedField: On the first key the schema does not declare.
    """
    violations = find_violations(config, schema)
    if violations:
        raise violations[0]


def _gather(calls: dict[str, Callable[[], Any]]) -> dict[str, Any]:
    """Run *calls* concurrently and return their results by name.

    The first failure cancels the calls that have not started and is re-raised.
    Connections opened by the worker threads are closed before returning.
    """
    try:
        with ThreadPoolExecutor(max_workers=len(calls), thread_name_prefix="dc-lookup") as pool:
            futures = {name: pool.submit(fn) for name, fn in calls.items()}
            done, pending = wait(futures.values(), return_when=FIRST_EXCEPTION)
            for future in futures.values():
                if future in done and future.exception() is not None:
                    for other in pending:
                        other.cancel()
                    raise future.exception()
    finally:
        # Workers have exited; their keep-alive connections would otherwise linger.
        prune_pool()
    return {name: future.result() for name, future in futures.items()}


def get_by_application(
    client:      "ManagementClient",
    application: str,
    options:     dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Get a device configuration record for an application.

    Usage::

        config = get_by_application(client, "App1", {
            "network":  "wifi",
            "wifiSsid": "foobar",
            "wifiKey":  "hello",
        })

    :param client:      Management API client.
    :param application: Application name.
    :param options:     Network options, as for :func:`generate`.
    :raises NotAuthenticated: If nobody is logged in.
    """
    if options is None:
        options = {}

    logger.debug("Resolving configuration for application %s", application)
    results = _gather({
        "application":   lambda: client.get_application(application),
        "apiKey":        lambda: client.get_api_key(application),
        "userId":        client.get_user_id,
        "username":      client.whoami,
        "apiUrl":        lambda: client.get_setting("apiUrl"),
        "vpnUrl":        lambda: client.get_setting("vpnUrl"),
        "registryUrl":   lambda: client.get_setting("registryUrl"),
        "deltaUrl":      lambda: client.get_setting("deltaUrl"),
        "pubNubKeys":    client.get_pubnub_keys,
        "mixpanelToken": client.get_mixpanel_token,
    })

    if results["username"] is None:
        raise NotAuthenticated()

    config = generate({
        "application": results["application"],
        "user": {
            "id":       results["userId"],
            "username": results["username"],
        },
        "pubnub":   results["pubNubKeys"],
        "mixpanel": {"token": results["mixpanelToken"]},
        "apiKey":   results["apiKey"],
        "endpoints": {
            "api":      results["apiUrl"],
            "vpn":      results["vpnUrl"],
            "registry": results["registryUrl"],
            "delta":    results["deltaUrl"],
        },
    }, options)
    validate(config)
    logger.info("Generated configuration for application %s", application)
    return config


def get_by_device(
    client:  "ManagementClient",
    uuid:    str,
    options: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Get a device configuration record for a registered device.

    The application record is stamped with ``registered_at`` (unix seconds),
    ``deviceId`` and ``uuid``.

    :param client:  Management API client.
    :param uuid:    Device uuid.
    :param options: Network options, as for :func:`generate`.
    """
    if options is None:
        options = {}

    device = client.get_device(uuid)
    config = get_by_application(client, device["application_name"], options)
    config["registered_at"] = int(time.time())
    config["deviceId"]      = device["id"]
    config["uuid"]          = device["uuid"]
    validate(config)
    logger.info("Generated configuration for device %s", uuid)
    return config
