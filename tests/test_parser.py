"""Tests for command body parsing."""

import pytest

from slashbot.exceptions import ParseError
from slashbot.parser import parse_command_text, parse_invocation, parse_request_body


# --- parse_command_text ---

def test_command_and_arguments_split():
    assert parse_command_text("echo hello world") == ("echo", ["hello", "world"])


def test_empty_text_resolves_to_help():
    assert parse_command_text("") == ("help", [])


def test_whitespace_only_text_resolves_to_help():
    assert parse_command_text("   \t ") == ("help", [])


def test_command_without_arguments():
    assert parse_command_text("help") == ("help", [])


def test_repeated_whitespace_collapses():
    """Runs of spaces never produce empty-string arguments."""
    assert parse_command_text("echo  a   b") == ("echo", ["a", "b"])


def test_leading_and_trailing_whitespace_ignored():
    assert parse_command_text("  echo a  ") == ("echo", ["a"])


def test_tabs_and_newlines_separate_arguments():
    assert parse_command_text("echo a\tb\nc") == ("echo", ["a", "b", "c"])


def test_command_name_case_preserved():
    assert parse_command_text("Echo Hi") == ("Echo", ["Hi"])


# --- parse_request_body ---

def test_request_body_fields_parsed(form_body):
    request, is_ssl_check = parse_request_body(
        form_body(text="echo hi", response_url="https://hooks.example.com/commands/1/2")
    )
    assert is_ssl_check is False
    assert request.command == "/bot"
    assert request.text == "echo hi"
    assert request.response_url == "https://hooks.example.com/commands/1/2"
    assert request.user_id == "U2147483697"
    assert request.api_app_id == "A123456"
    assert request.trigger_id == "13345224609.738474920.8088930838d88f008e0"
    assert request.channel_id == "C2147483705"


def test_ssl_check_flag_detected(form_body):
    _, is_ssl_check = parse_request_body(form_body(ssl_check="1"))
    assert is_ssl_check is True


def test_ssl_check_other_values_not_a_probe(form_body):
    _, is_ssl_check = parse_request_body(form_body(ssl_check="0"))
    assert is_ssl_check is False


def test_unknown_fields_ignored():
    request, _ = parse_request_body(b"text=echo&is_enterprise_install=false")
    assert request.text == "echo"


def test_repeated_field_keeps_first_value():
    request, _ = parse_request_body(b"text=first&text=second")
    assert request.text == "first"


def test_empty_body_parses_to_defaults():
    request, is_ssl_check = parse_request_body(b"")
    assert request.text == ""
    assert is_ssl_check is False


def test_request_body_is_immutable():
    request, _ = parse_request_body(b"text=echo")
    with pytest.raises(Exception):
        request.text = "changed"


@pytest.mark.parametrize("body", [
    b"text=\xff\xfe",          # not UTF-8
    b"text=%FF",               # percent-escape that is not UTF-8
    b"text=echo&garbage",      # field without '='
])
def test_malformed_body_raises_parse_error(body):
    with pytest.raises(ParseError):
        parse_request_body(body)


# --- parse_invocation ---

def test_parse_invocation_end_to_end(form_body):
    invocation, is_ssl_check = parse_invocation(form_body(text="echo hello world"))
    assert is_ssl_check is False
    assert invocation.command_name == "echo"
    assert invocation.arguments == ["hello", "world"]
    assert invocation.raw.text == "echo hello world"


def test_parse_invocation_empty_text_is_help(form_body):
    invocation, _ = parse_invocation(form_body(text=""))
    assert invocation.command_name == "help"
    assert invocation.arguments == []
