"""Response types for the M2Web REST API.

Pydantic models representing the JSON envelope returned by every M2Web
endpoint and the eWON device records it carries. Envelope fields are
optional with defaults; a device record, once present, must carry every
field.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class DeviceStatus(str, Enum):
    """Connection status reported for an eWON."""

    ONLINE = "online"
    OFFLINE = "offline"


class Device(BaseModel):
    """An eWON registered on the Talk2M account.

    Field names follow Python conventions; the camelCase wire names are
    declared as aliases so the model decodes API payloads directly and
    serialises back to the same shape with ``by_alias=True``. Validation is
    strict: a quoted number or boolean is a data error, not a coercion.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)

    # Identification
    id: int = Field(ge=0, le=0xFFFFFFFF)
    name: str
    encoded_name: str = Field(alias="encodedName")

    # Free-form on the wire, usually one of DeviceStatus
    status: str

    description: str
    custom_attributes: tuple[str, str, str] = Field(alias="customAttributes")

    # VPN server the eWON is attached to
    m2web_server: str = Field(alias="m2webServer")

    lan_devices: list[str] = Field(alias="lanDevices")
    ewon_services: list[str] = Field(alias="ewonServices")

    @property
    def is_online(self) -> bool:
        """Whether the eWON currently reports itself online."""
        return self.status == DeviceStatus.ONLINE.value


class ApiResponse(BaseModel):
    """JSON envelope returned by every M2Web endpoint."""

    model_config = ConfigDict(strict=True)

    success: bool

    # Payloads, depending on the endpoint
    ewon: Device | None = None
    ewons: list[Device] = []
    t2msession: str = ""

    # Set by the API on failures
    message: str = ""
    code: int = 0


class DecodeError(ValueError):
    """Raised when a response body cannot be decoded into an ApiResponse."""


class MalformedResponseError(DecodeError):
    """The body is not syntactically valid JSON."""


class InvalidResponseDataError(DecodeError):
    """The body is valid JSON but does not match the envelope shape."""


class TruncatedResponseError(DecodeError):
    """The body is empty or ends before the JSON document is complete."""


def _describe(error: dict) -> str:
    loc = error["loc"]
    path = ".".join(str(part) for part in loc)
    if error["type"] == "missing":
        return f"missing field `{loc[-1]}` at {path}"
    if not path:
        return error["msg"]
    return f"invalid field `{loc[-1]}` at {path}: {error['msg']}"


def decode_response(body: bytes | str) -> ApiResponse:
    """Decode a raw response body into an ApiResponse.

    Args:
        body: Raw HTTP response body.

    Returns:
        The validated envelope.

    Raises:
        TruncatedResponseError: If the body is empty or incomplete.
        MalformedResponseError: If the body is not valid JSON.
        InvalidResponseDataError: If a field has the wrong type or a device
            record misses a required field.
    """
    if not body.strip():
        msg = "empty response body"
        raise TruncatedResponseError(msg)

    try:
        return ApiResponse.model_validate_json(body)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        if errors and errors[0]["type"] == "json_invalid":
            detail = errors[0].get("ctx", {}).get("error", errors[0]["msg"])
            if "EOF" in detail:
                raise TruncatedResponseError(detail) from exc
            raise MalformedResponseError(detail) from exc
        msg = "; ".join(_describe(error) for error in errors)
        raise InvalidResponseDataError(msg) from exc
