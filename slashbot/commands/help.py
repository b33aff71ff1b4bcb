"""Synthesized help command listing every other registered command."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from ..models import CommandReply, CommandRequestBody
from .base import BaseCommandHandler

if TYPE_CHECKING:
    from .base import HandlerRegistry

NO_COMMANDS_TEXT = "No commands are available."


class HelpCommandHandler(BaseCommandHandler):
    """Lists the registry's commands, excluding itself, in registration order.

    Each entry is ``name arguments`` on one line and the description
    on the next; entries are separated by a blank line.
    """

    def __init__(self, registry: "HandlerRegistry"):
        self._registry = registry

    @property
    def name(self) -> str:
        return "help"

    @property
    def description(self) -> str:
        return "Displays a list of the available commands, their arguments, and their description"

    def build_help_text(self) -> str:
        entries = []
        for handler in self._registry.handlers:
            if handler is self:
                continue
            usage = f"{handler.name} {handler.arguments_description}".rstrip()
            entries.append(f"{usage}\n{handler.description}")
        if not entries:
            return NO_COMMANDS_TEXT
        return "\n\n".join(entries)

    async def execute(
        self, arguments: List[str], request: CommandRequestBody
    ) -> CommandReply:
        return CommandReply.ephemeral(self.build_help_text())
