"""Unit tests for MailMessage normalization."""

import json

import pytest

from mailconnect.domain.entities.email_log import EmailLog, EmailLogStatus
from mailconnect.domain.entities.mail_message import (
    NO_SUBJECT,
    MailError,
    MailMessage,
    is_valid_email,
    normalize_headers,
    normalize_recipients,
)


class TestNormalizeRecipients:
    def test_string_is_split_on_commas(self) -> None:
        assert normalize_recipients("a@x.com, b@x.com") == ["a@x.com", "b@x.com"]

    def test_blank_entries_dropped(self) -> None:
        assert normalize_recipients(["a@x.com", " ", ""]) == ["a@x.com"]

    def test_none_is_empty(self) -> None:
        assert normalize_recipients(None) == []

    def test_order_preserved(self) -> None:
        assert normalize_recipients(["b@x.com", "a@x.com"]) == ["b@x.com", "a@x.com"]


def test_normalize_headers_keeps_strings() -> None:
    assert normalize_headers("X-A: 1\r\nX-B: 2") == "X-A: 1\r\nX-B: 2"
    assert normalize_headers(("X-A: 1",)) == ["X-A: 1"]
    assert normalize_headers(None) == ""


class TestMailMessage:
    def test_from_args_splits_string_recipients(self) -> None:
        message = MailMessage.from_args(
            {"to": "a@x.com,b@x.com", "subject": "Hi", "message": "Body", "headers": ["X-A: 1"]}
        )

        assert message.recipients == ("a@x.com", "b@x.com")
        assert message.subject == "Hi"
        assert message.headers == ["X-A: 1"]

    def test_display_values(self) -> None:
        message = MailMessage.from_args({"to": ["a@x.com", "b@x.com"], "message": "Body"})

        assert message.recipients_display == "a@x.com, b@x.com"
        assert message.subject_display == NO_SUBJECT

    def test_header_list_stored_as_json(self) -> None:
        message = MailMessage(recipients=("a@x.com",), headers=["X-A: 1", "X-B: 2"])

        assert json.loads(message.headers_text) == ["X-A: 1", "X-B: 2"]

    def test_html_detected_from_content_type_header(self) -> None:
        message = MailMessage(
            recipients=("a@x.com",),
            body="<p>Hi</p>",
            headers="Content-Type: text/html; charset=UTF-8",
        )

        assert message.is_html is True
        assert message.html_content == "<p>Hi</p>"

    def test_plain_message_has_no_html_content(self) -> None:
        message = MailMessage(recipients=("a@x.com",), body="Hi", headers="X-A: 1")

        assert message.is_html is False
        assert message.html_content == ""

    def test_explicit_html_body_wins(self) -> None:
        message = MailMessage(recipients=("a@x.com",), body="Hi", html_body="<b>Hi</b>")

        assert message.html_content == "<b>Hi</b>"

    def test_extra_headers_skip_content_type(self) -> None:
        message = MailMessage(
            recipients=("a@x.com",),
            headers=["Content-Type: text/html", "Reply-To: r@x.com", "garbage"],
        )

        assert message.extra_headers() == {"Reply-To": "r@x.com"}


def test_mail_error_defaults() -> None:
    error = MailError(message="Connection refused")

    assert error.code == "mail_failed"
    assert error.to_dict() == {"code": "mail_failed", "message": "Connection refused", "data": {}}


@pytest.mark.parametrize(
    "value,expected",
    [
        ("user@example.com", True),
        ("not-an-address", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_email(value, expected) -> None:
    assert is_valid_email(value) is expected


class TestEmailLogEntity:
    def test_invalid_status_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid status"):
            EmailLog(id=1, fingerprint="abc", recipients="a@x.com", subject="Hi", status="sent")

    def test_missing_fingerprint_rejected(self) -> None:
        with pytest.raises(ValueError, match="Fingerprint"):
            EmailLog(id=1, fingerprint="", recipients="a@x.com", subject="Hi", status="pending")

    def test_terminal_values(self) -> None:
        assert EmailLogStatus.terminal_values() == ("success", "failed")
