"""Wire models for the Lambda extensions API."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    INVOKE = "INVOKE"
    SHUTDOWN = "SHUTDOWN"


class RegisterRequest(BaseModel):
    events: list[EventType] = Field(default_factory=lambda: [EventType.INVOKE, EventType.SHUTDOWN])


class RegisterResponse(BaseModel):
    """Function metadata returned by ``/register``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    function_name: str = Field(default="", alias="functionName")
    function_version: str = Field(default="", alias="functionVersion")
    handler: str = ""


class Tracing(BaseModel):
    type: str = ""
    value: str = ""


class NextEventResponse(BaseModel):
    """A lifecycle event delivered by ``/event/next``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_type: EventType = Field(alias="eventType")
    deadline_ms: int = Field(alias="deadlineMs")
    request_id: str = Field(default="", alias="requestId")
    invoked_function_arn: str = Field(default="", alias="invokedFunctionArn")
    tracing: Tracing = Field(default_factory=Tracing)
    shutdown_reason: str | None = Field(default=None, alias="shutdownReason")

    def seconds_until_deadline(self, now: float) -> float:
        """Time left before the host's deadline, given ``now`` as epoch seconds."""
        return self.deadline_ms / 1000 - now
