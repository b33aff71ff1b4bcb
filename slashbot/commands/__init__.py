"""Command handler framework for slashbot.

Provides the BaseCommandHandler ABC, the HandlerRegistry, the
synthesized help command and the built-in echo command.
"""

from .base import RESERVED_COMMANDS, BaseCommandHandler, HandlerRegistry
from .echo import EchoCommandHandler
from .help import HelpCommandHandler


def default_handlers():
    """Command handlers shipped with slashbot, in help order."""
    return [EchoCommandHandler()]


__all__ = [
    "BaseCommandHandler",
    "EchoCommandHandler",
    "HandlerRegistry",
    "HelpCommandHandler",
    "RESERVED_COMMANDS",
    "default_handlers",
]
