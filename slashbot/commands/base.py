"""Base classes for the command handler framework.

Defines the contract every slash command implements and the
registry that resolves command names to handlers.

Key classes:
    BaseCommandHandler: ABC that each command must implement.
    HandlerRegistry: Immutable, ordered set of handlers. Always ends
        with the synthesized help handler.

Constants:
    RESERVED_COMMANDS: Command names user handlers may not claim.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

import structlog

from ..exceptions import RegistryError
from ..models import CommandReply, CommandRequestBody

logger = structlog.get_logger("slashbot.commands")

RESERVED_COMMANDS = frozenset({"help"})


class BaseCommandHandler(ABC):
    """Abstract base class for a single slash command.

    Subclasses define the three descriptive properties and
    implement execute(). Raising from execute() is fine: the
    dispatcher turns the exception into an ephemeral reply.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Word after the slash command that selects this handler."""
        ...

    @property
    def arguments_description(self) -> str:
        """Argument synopsis shown in help, e.g. ``[words...]``."""
        return ""

    @property
    def description(self) -> str:
        """One-line description shown in help."""
        return ""

    @abstractmethod
    async def execute(
        self, arguments: List[str], request: CommandRequestBody
    ) -> CommandReply:
        """Run the command.

        Args:
            arguments: Whitespace-separated words after the command name.
            request: The full parsed request, for user/channel ids.

        Returns:
            The reply to post to the request's response_url.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class HandlerRegistry:
    """Ordered, read-only collection of command handlers.

    Built once at startup and shared by every request. The help
    handler is appended after the supplied handlers, so help output
    follows registration order.

    Args:
        handlers: Command handlers in registration order.

    Raises:
        RegistryError: If two handlers share a name or a handler
            claims a reserved name.
    """

    def __init__(self, handlers: Iterable[BaseCommandHandler] = ()):
        from .help import HelpCommandHandler

        supplied = list(handlers)
        seen = set()
        for handler in supplied:
            name = handler.name
            if not name or any(ch.isspace() for ch in name):
                raise RegistryError(
                    f"Invalid command name {name!r}",
                    command=name,
                    handler=type(handler).__name__,
                )
            if name in RESERVED_COMMANDS:
                raise RegistryError(
                    f"Command name '{name}' is reserved",
                    command=name,
                    handler=type(handler).__name__,
                )
            if name in seen:
                raise RegistryError(
                    f"Command '{name}' is registered more than once",
                    command=name,
                    handler=type(handler).__name__,
                )
            seen.add(name)

        self._handlers: Tuple[BaseCommandHandler, ...] = tuple(supplied) + (
            HelpCommandHandler(self),
        )
        logger.debug("handler_registry_built", commands=list(self.command_names))

    @property
    def handlers(self) -> Tuple[BaseCommandHandler, ...]:
        """All handlers in registration order, help last."""
        return self._handlers

    @property
    def command_names(self) -> Tuple[str, ...]:
        return tuple(handler.name for handler in self._handlers)

    def get(self, command: str) -> Optional[BaseCommandHandler]:
        """Return the first handler whose name equals ``command`` exactly."""
        for handler in self._handlers:
            if handler.name == command:
                return handler
        return None

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self):
        return iter(self._handlers)
