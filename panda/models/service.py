"""Service model: a registered tunnel endpoint owned by a user."""

import re
import uuid
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError
from sqlmodel import Field, SQLModel

from panda.models.base import TimestampMixin, new_uuid


class FrpType(StrEnum):
    HTTP = "http"
    HTTPS = "https"
    TCP = "tcp"
    UDP = "udp"
    STCP = "stcp"
    XTCP = "xtcp"


# Protocols routed by subdomain vs. by a port opened on the tunnel server
SUBDOMAIN_ROUTED_TYPES = frozenset({FrpType.HTTP.value, FrpType.HTTPS.value})
PORT_MAPPED_TYPES = frozenset({FrpType.TCP.value, FrpType.UDP.value})
SECRET_KEY_TYPES = frozenset({FrpType.STCP.value, FrpType.XTCP.value})
FRP_TYPE_VALUES = frozenset(t.value for t in FrpType)

NAME_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")
SUBDOMAIN_PATTERN = re.compile(r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?")
PORT_MIN, PORT_MAX = 1, 65535


class Service(TimestampMixin, SQLModel, table=True):
    __tablename__ = "services"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    owner_id: uuid.UUID = Field(
        foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True
    )

    name: str = Field(max_length=255, nullable=False)
    description: str = Field(max_length=200, nullable=False)
    local_port: int = Field(nullable=False)

    # Globally unique; the constraint is what settles concurrent registrations
    subdomain: str = Field(max_length=63, unique=True, nullable=False, index=True)

    frp_type: str = Field(max_length=10, nullable=False)
    remote_port: int | None = Field(default=None)
    use_encryption: bool = Field(default=True)
    use_compression: bool = Field(default=False)

    # Derived from subdomain + configured base host, never taken from input
    public_url: str = Field(max_length=2048, nullable=False)


# ── Pydantic schemas ─────────────────────────────────────────

def _parse_port(value: Any) -> int:
    if isinstance(value, bool):
        raise PydanticCustomError("port_type", "Port must be a number")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str) and re.fullmatch(r"\s*[+-]?\d+\s*", value):
        value = int(value)
    if not isinstance(value, int):
        raise PydanticCustomError("port_type", "Port must be a number")
    if not PORT_MIN <= value <= PORT_MAX:
        raise PydanticCustomError(
            "port_range", "Port must be between {min} and {max}", {"min": PORT_MIN, "max": PORT_MAX}
        )
    return value


class ServiceInput(BaseModel):
    """Normalized create/update payload. Wire names are camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        validate_default=True,
    )

    name: str
    description: str
    local_port: int
    subdomain: str
    frp_type: FrpType
    # Declared after frp_type so the cross-field check can see it
    remote_port: int | None = None
    use_encryption: bool = True
    use_compression: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if len(value) < 3:
            raise PydanticCustomError("name_length", "Service name must be at least 3 characters long")
        if not NAME_PATTERN.fullmatch(value):
            raise PydanticCustomError(
                "name_charset",
                "Name can only contain letters, numbers, hyphens, and underscores.",
            )
        return value

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str) -> str:
        if len(value) < 10:
            raise PydanticCustomError(
                "description_length", "Description must be at least 10 characters long"
            )
        if len(value) > 200:
            raise PydanticCustomError(
                "description_length", "Description must be 200 characters or less."
            )
        return value

    @field_validator("subdomain")
    @classmethod
    def _check_subdomain(cls, value: str) -> str:
        if len(value) < 3:
            raise PydanticCustomError(
                "subdomain_length", "Subdomain must be at least 3 characters long"
            )
        if not SUBDOMAIN_PATTERN.fullmatch(value):
            raise PydanticCustomError(
                "subdomain_format",
                "Invalid subdomain format. Use lowercase letters, numbers, and hyphens.",
            )
        return value

    @field_validator("frp_type", mode="before")
    @classmethod
    def _check_frp_type(cls, value: Any) -> Any:
        if not isinstance(value, str) or value not in FRP_TYPE_VALUES:
            raise PydanticCustomError(
                "invalid_tunnel_type", "Invalid tunnel type. Please select from the list."
            )
        return value

    @field_validator("local_port", mode="before")
    @classmethod
    def _coerce_local_port(cls, value: Any) -> int:
        return _parse_port(value)

    @field_validator("remote_port", mode="before")
    @classmethod
    def _coerce_remote_port(cls, value: Any) -> int | None:
        if value is None or value == "":
            return None
        return _parse_port(value)

    @field_validator("remote_port")
    @classmethod
    def _remote_port_for_protocol(cls, value: int | None, info: ValidationInfo) -> int | None:
        frp_type = str(info.data.get("frp_type"))
        if frp_type not in PORT_MAPPED_TYPES:
            return None
        if value is None:
            raise PydanticCustomError(
                "remote_port_required", "Remote port is required for tcp and udp tunnels"
            )
        return value


class ServiceRead(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    description: str
    local_port: int
    subdomain: str
    frp_type: FrpType
    remote_port: int | None
    use_encryption: bool
    use_compression: bool
    public_url: str
    created_at: datetime
    updated_at: datetime
