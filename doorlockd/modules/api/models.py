"""
doorlockd shared data models.

These models define the structure of the data passed between the
transport layer and the logic module.
"""

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, StrictStr

# Enums


class Response(IntEnum):
    """Outcome of a single door request."""

    SUCCESS = 0
    FAIL = 1
    NOT_JSON = 2
    JSON_ERROR = 3
    INVALID_TOKEN = 4
    SERVICE_INIT_ERROR = 5
    INVALID_CREDENTIALS = 6
    UNKNOWN_ACTION = 7
    ALREADY_LOCKED = 8
    ALREADY_UNLOCKED = 9

    @classmethod
    def from_code(cls, code: int) -> "Response":
        """
        Map a numeric code to a response.

        Unknown or unlisted codes are treated as FAIL.
        """
        try:
            return cls(code)
        except ValueError:
            return cls.FAIL


RESPONSE_MESSAGES = {
    Response.SUCCESS: "Success",
    Response.FAIL: "Request failed",
    Response.NOT_JSON: "Request is not valid JSON",
    Response.JSON_ERROR: "Request is missing a field or has a field of the wrong type",
    Response.INVALID_TOKEN: "User provided an invalid token",
    Response.SERVICE_INIT_ERROR: "Credential service unavailable",
    Response.INVALID_CREDENTIALS: "Invalid credentials",
    Response.UNKNOWN_ACTION: "Unknown action",
    Response.ALREADY_LOCKED: "Door is already locked",
    Response.ALREADY_UNLOCKED: "Door is already unlocked",
}


# Request Models (Transport Input)


class DoorRequest(BaseModel):
    """A lock/unlock request. Constructed per call, never persisted."""

    model_config = ConfigDict(extra="ignore")

    action: StrictStr = Field(..., description="Requested action: lock or unlock")
    ip: StrictStr = Field(..., description="Address of the requesting client")
    user: StrictStr = Field(..., description="Directory-service username")
    password: StrictStr = Field(..., description="Directory-service password")
    token: StrictStr = Field(..., description="Current rotating token as hex string")

    def __repr__(self) -> str:
        return f"DoorRequest(action={self.action!r}, user={self.user!r}, ip={self.ip!r})"

    __str__ = __repr__


# Response Models (Transport Output)


class ActionResponse(BaseModel):
    """Result returned to the caller for every request."""

    code: int = Field(..., description="Numeric response code")
    response: str = Field(..., description="Response name")
    message: str = Field(..., description="Human readable description")

    @classmethod
    def from_response(cls, response: Response) -> "ActionResponse":
        return cls(
            code=int(response),
            response=response.name,
            message=RESPONSE_MESSAGES[response],
        )
