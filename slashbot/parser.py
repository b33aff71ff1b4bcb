"""Parse verified slash-command bodies into command invocations."""

from typing import List, Tuple
from urllib.parse import parse_qsl

from pydantic import ValidationError

from .exceptions import ParseError
from .models import CommandInvocation, CommandRequestBody

HELP_COMMAND = "help"


def parse_request_body(body: bytes) -> Tuple[CommandRequestBody, bool]:
    """Decode a form-encoded body into a CommandRequestBody.

    Repeated fields keep their first value.

    Returns:
        The parsed body and whether it is a platform health probe.

    Raises:
        ParseError: If the body is not valid UTF-8 form encoding.
    """
    try:
        pairs = parse_qsl(
            body.decode("utf-8"),
            keep_blank_values=True,
            strict_parsing=True,
            errors="strict",
        )
    except ValueError as e:
        # UnicodeDecodeError is a ValueError too
        raise ParseError("Malformed form body", error=str(e)) from e

    fields = {}
    for key, value in pairs:
        fields.setdefault(key, value)

    try:
        request = CommandRequestBody.model_validate(fields)
    except ValidationError as e:
        raise ParseError("Form fields do not match a slash command", error=str(e)) from e
    return request, request.is_ssl_check


def parse_command_text(text: str) -> Tuple[str, List[str]]:
    """Split command text into a command name and its arguments.

    Runs of whitespace collapse, so no argument is ever an empty string.
    Empty text resolves to the help command.
    """
    tokens = text.split()
    if not tokens:
        return HELP_COMMAND, []
    return tokens[0], tokens[1:]


def parse_invocation(body: bytes) -> Tuple[CommandInvocation, bool]:
    """Parse a verified body straight into a CommandInvocation.

    Returns:
        The invocation and the health-probe flag.
    """
    request, is_ssl_check = parse_request_body(body)
    command_name, arguments = parse_command_text(request.text)
    invocation = CommandInvocation(
        command_name=command_name, arguments=arguments, raw=request
    )
    return invocation, is_ssl_check
