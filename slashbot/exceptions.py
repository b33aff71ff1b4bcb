"""Custom exception hierarchy for slashbot.

Every failure in the webhook pipeline is scoped to a single request.
The classes below let each stage (verification, parsing, dispatch,
reply delivery) raise a precise error that the bot maps to the right
outcome: a generic rejection, a silent acknowledgment, or an
ephemeral reply to the invoking user.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for logging and retry decisions."""
    TRANSIENT = "transient"          # Network blips, callback endpoint hiccups
    PERMANENT = "permanent"          # Bad input, forged or stale requests
    INFRASTRUCTURE = "infrastructure"  # Missing config, environment issues


class SlashBotError(Exception):
    """Base exception for all slashbot errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification.
        module: Originating module name (e.g. "security").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error is worth retrying."""
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Inbound request exceptions
# ---------------------------------------------------------------------------

class VerificationFailure(str, Enum):
    """Reason a webhook request was rejected before parsing."""
    METHOD_NOT_ALLOWED = "method_not_allowed"
    UNSUPPORTED_CONTENT_TYPE = "unsupported_content_type"
    MISSING_SIGNATURE = "missing_signature"
    MISSING_TIMESTAMP = "missing_timestamp"
    INVALID_TIMESTAMP = "invalid_timestamp"
    STALE_TIMESTAMP = "stale_timestamp"
    SIGNATURE_MISMATCH = "signature_mismatch"


class VerificationError(SlashBotError):
    """The request failed transport or signature verification.

    The reason is for server-side logs only and is never sent back to
    the network caller.

    Attributes:
        reason: Which verification step failed.
    """

    def __init__(
        self,
        reason: VerificationFailure,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.reason = reason
        super().__init__(
            message or reason.value,
            category=category,
            module=module or "security",
            **context,
        )


class ParseError(SlashBotError):
    """The verified request body is not a well-formed command form."""

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message, category=category, module=module or "parser", **context
        )


# ---------------------------------------------------------------------------
# Command exceptions
# ---------------------------------------------------------------------------

class CommandError(SlashBotError):
    """A command handler could not complete.

    ``message`` is shown verbatim to the invoking user as an ephemeral
    reply, so it must not contain internal details.

    Attributes:
        command: Name of the failing command (if known).
    """

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        super().__init__(
            message, category=category, module=module or "commands", **context
        )


class RegistryError(SlashBotError):
    """The handler set cannot form a valid registry (e.g. duplicate names)."""

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        super().__init__(
            message, category=category, module=module or "commands", **context
        )


# ---------------------------------------------------------------------------
# Outbound reply exceptions
# ---------------------------------------------------------------------------

class DeliveryError(SlashBotError):
    """The reply could not be posted to the callback URL.

    Attributes:
        status: HTTP status returned by the callback endpoint, or None
            when the request never got a response.
    """

    def __init__(
        self,
        message: str = "",
        *,
        status: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.TRANSIENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.status = status
        super().__init__(
            message, category=category, module=module or "responder", **context
        )


# ---------------------------------------------------------------------------
# Configuration exceptions
# ---------------------------------------------------------------------------

class ConfigurationError(SlashBotError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )
