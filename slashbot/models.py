"""Pydantic models for slash-command requests and replies."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResponseType(str, Enum):
    """Visibility of a reply in the channel."""
    EPHEMERAL = "ephemeral"    # Only the invoking user sees it
    IN_CHANNEL = "in_channel"  # Broadcast to the whole channel


class CommandRequestBody(BaseModel):
    """Form fields posted by the platform for one slash-command invocation."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    command: str = ""
    text: str = ""
    response_url: str = ""
    trigger_id: str = ""
    user_id: str = ""
    user_name: str = ""
    api_app_id: str = ""
    team_id: str = ""
    channel_id: str = ""
    channel_name: str = ""
    ssl_check: Optional[str] = None

    @property
    def is_ssl_check(self) -> bool:
        """Whether this request is the platform's endpoint health probe."""
        return self.ssl_check == "1"


class CommandInvocation(BaseModel):
    """A verified request resolved to a command name and its arguments."""

    model_config = ConfigDict(frozen=True)

    command_name: str = Field(..., min_length=1)
    arguments: List[str] = Field(default_factory=list)
    raw: CommandRequestBody


class CommandReply(BaseModel):
    """Reply posted back to the callback URL."""

    model_config = ConfigDict(frozen=True)

    response_type: ResponseType = ResponseType.EPHEMERAL
    text: str = ""

    def to_payload(self) -> dict:
        """JSON body expected by the platform's response_url endpoint."""
        return {"response_type": self.response_type.value, "text": self.text}

    @classmethod
    def ephemeral(cls, text: str) -> "CommandReply":
        return cls(response_type=ResponseType.EPHEMERAL, text=text)

    @classmethod
    def in_channel(cls, text: str) -> "CommandReply":
        return cls(response_type=ResponseType.IN_CHANNEL, text=text)
