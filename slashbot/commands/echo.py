"""Echo command: repeats its arguments back to the channel."""

from typing import List

from ..models import CommandReply, CommandRequestBody
from .base import BaseCommandHandler


class EchoCommandHandler(BaseCommandHandler):

    @property
    def name(self) -> str:
        return "echo"

    @property
    def arguments_description(self) -> str:
        return "[words...]"

    @property
    def description(self) -> str:
        return "Accepts any number of arguments and echoes them back to the channel"

    async def execute(
        self, arguments: List[str], request: CommandRequestBody
    ) -> CommandReply:
        return CommandReply.in_channel(" ".join(arguments))
