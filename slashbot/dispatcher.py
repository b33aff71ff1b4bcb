"""Route parsed command invocations to their handlers."""

from typing import Optional

import structlog

from .commands.base import HandlerRegistry
from .exceptions import CommandError
from .models import CommandInvocation, CommandReply

logger = structlog.get_logger("slashbot.commands")

GENERIC_FAILURE_TEXT = "Something went wrong while running that command."


def _user_message(error: Exception) -> str:
    """Text shown to the user for a failed command."""
    if isinstance(error, CommandError):
        message = error.message
    else:
        message = str(error)
    return message or GENERIC_FAILURE_TEXT


class Dispatcher:
    """Resolves an invocation against the registry and runs one handler.

    Stateless apart from the registry, so one instance serves every
    concurrent request.
    """

    def __init__(self, registry: HandlerRegistry):
        self.registry = registry

    async def dispatch(self, invocation: CommandInvocation) -> Optional[CommandReply]:
        """Run the matching handler and return its reply.

        Returns:
            The handler's reply, an ephemeral error reply if the
            handler raised, or None when no handler matches (the
            invocation is dropped without a reply).
        """
        log = logger.bind(
            command=invocation.command_name,
            user_id=invocation.raw.user_id,
            trigger_id=invocation.raw.trigger_id,
        )
        handler = self.registry.get(invocation.command_name)
        if handler is None:
            log.info("command_not_found")
            return None

        log.debug("command_dispatch", argument_count=len(invocation.arguments))
        try:
            reply = await handler.execute(list(invocation.arguments), invocation.raw)
        except Exception as e:
            log.warning(
                "command_failed",
                error=str(e),
                exc_type=type(e).__name__,
            )
            return CommandReply.ephemeral(_user_message(e))

        if not isinstance(reply, CommandReply):
            log.error("command_invalid_reply", reply_type=type(reply).__name__)
            return CommandReply.ephemeral(GENERIC_FAILURE_TEXT)

        log.info("command_completed", response_type=reply.response_type.value)
        return reply
