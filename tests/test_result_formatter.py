"""Tests for the tool result formatter."""
from decisions import ToolKind, ToolResult
from tools.result_formatter import MAX_FIELD_CHARS, format_result


def test_empty_list_is_no_data_line():
    text = format_result(ToolResult.succeeded([]), ToolKind.LIST_MAIL)
    assert text == "Tool Call: ListMail\nResult: No data found."


def test_list_has_one_line_per_email(inbox):
    text = format_result(ToolResult.succeeded(inbox), ToolKind.LIST_MAIL)
    lines = text.splitlines()

    assert lines[0] == "Tool Call: ListMail"
    assert lines[1] == "Result: Retrieved 2 items"
    assert lines[2] == "Id: m1, Subject: Hello, From: alice@example.com, Date: Mon, 1 Jan 2024, Snippet: Hi!"
    # Empty snippet renders as N/A
    assert lines[3].endswith("Snippet: N/A")
    assert len(lines) == 4


def test_single_object_is_a_block():
    payload = {"message_id": "abc", "to": "bob@example.com", "subject": None}
    text = format_result(ToolResult.succeeded(payload), ToolKind.SEND_MAIL)

    assert text.splitlines() == [
        "Tool Call: SendMail",
        "Message Id: abc",
        "To: bob@example.com",
        "Subject: N/A",
    ]


def test_failure_names_kind_and_target():
    result = ToolResult.failed("Failed to delete email with ID m9")
    text = format_result(result, ToolKind.DELETE_MAIL, target="m9")
    assert text == "Tool Call: DeleteMail failed for ID m9: Failed to delete email with ID m9"


def test_failure_without_target():
    text = format_result(ToolResult.failed("Not authenticated", unauthorized=True), ToolKind.LIST_MAIL)
    assert text == "Tool Call: ListMail failed: Not authenticated"


def test_none_payload_is_no_data():
    text = format_result(ToolResult.succeeded(None), ToolKind.READ_MAIL)
    assert text.endswith("Result: No data found.")


def test_long_values_are_truncated():
    body = "x" * (MAX_FIELD_CHARS + 50)
    text = format_result(ToolResult.succeeded({"body": body}), ToolKind.READ_MAIL)
    assert text.endswith("... [truncated]")
    assert len(text) < len(body)


def test_list_values_stay_on_one_line():
    payload = [{"id": "m1", "snippet": "line one\nline two"}]
    text = format_result(ToolResult.succeeded(payload), ToolKind.LIST_MAIL)
    assert text.splitlines()[-1] == "Id: m1, Snippet: line one line two"


def test_format_is_pure(inbox):
    result = ToolResult.succeeded(inbox)
    assert format_result(result, ToolKind.LIST_MAIL) == format_result(result, ToolKind.LIST_MAIL)


def test_send_failure_names_the_recipient():
    result = ToolResult.failed("Missing required fields: body")
    text = format_result(result, ToolKind.SEND_MAIL, target="bob@example.com")
    assert text == "Tool Call: SendMail failed for recipient bob@example.com: Missing required fields: body"
