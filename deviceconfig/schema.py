"""config.json schema.

Field names are the wire contract with the device agent and must not be
renamed. Validation runs in pydantic's lax mode, so numeric strings are
accepted for numeric fields.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import AnyUrl, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

LISTEN_PORT                      = 48484
DEFAULT_VPN_PORT                 = 1723
DEFAULT_APP_UPDATE_POLL_INTERVAL = 60000  # ms


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise PydanticCustomError("int_type", "must be of integer type")
    return value


# Numeric strings are still coerced; booleans are not integers here.
Integer = Annotated[int, BeforeValidator(_reject_bool)]


class DeviceConfigSchema(BaseModel):
    """Declared properties of a device configuration record.

    Unknown keys are ignored here; they are reported by a separate pass in
    :func:`deviceconfig.config.find_violations`.
    """

    model_config = ConfigDict(extra="ignore")

    applicationName: str = Field(..., description="Application name")
    applicationId: Integer = Field(..., description="Application id")
    deviceType: str = Field(..., description="Device type slug, e.g. raspberry-pi")
    userId: Integer = Field(..., description="Owner user id")
    username: str = Field(..., description="Owner username")
    files: dict[str, Any] = Field(..., description="Network configuration files")
    appUpdatePollInterval: Integer = Field(..., description="Application update poll interval (ms)")
    listenPort: Integer = Field(..., description="Supervisor listen port")
    vpnPort: Integer = Field(..., description="VPN port")
    apiEndpoint: AnyUrl = Field(..., description="API endpoint URL")
    vpnEndpoint: str = Field(..., description="VPN hostname")
    registryEndpoint: str = Field(..., description="Image registry hostname")
    deltaEndpoint: Optional[AnyUrl] = Field(None, description="Delta server URL")
    pubnubSubscribeKey: str = Field(..., description="PubNub subscribe key")
    pubnubPublishKey: str = Field(..., description="PubNub publish key")
    mixpanelToken: str = Field(..., description="Mixpanel token")
    apiKey: str = Field(..., description="Application API key")

    wifiSsid: Optional[str] = Field(None, description="Wifi SSID")
    wifiKey: Optional[str] = Field(None, description="Wifi passphrase")

    registered_at: Optional[Integer] = Field(None, description="Registration time (unix seconds)")
    deviceId: Optional[Integer] = Field(None, description="Device id")
    uuid: Optional[str] = Field(None, description="Device uuid")

    # Optional keys may be absent, but a present key must carry a value.
    @field_validator("wifiSsid", "wifiKey", mode="before")
    @classmethod
    def _wifi_credentials_set(cls, value: Any) -> Any:
        if value is None:
            raise PydanticCustomError("wifi_required", "is required when network is wifi")
        return value

    @field_validator("registered_at", "deviceId", "uuid", mode="before")
    @classmethod
    def _device_identity_set(cls, value: Any) -> Any:
        if value is None:
            raise PydanticCustomError("device_required", "is required for a registered device")
        return value


SCHEMA_PROPERTIES: tuple[str, ...] = tuple(DeviceConfigSchema.model_fields)
