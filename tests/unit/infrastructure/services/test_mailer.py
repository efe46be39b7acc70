"""Unit tests for the Mailer send flow."""

import json

import aiosmtplib
import pytest

from mailconnect.core.hooks import HookEvent
from mailconnect.domain.entities.hook_context import AbortHookException
from mailconnect.domain.entities.mail_message import MailError
from mailconnect.domain.services.fingerprint import MailFingerprint
from mailconnect.infrastructure.services.mailer import InvalidRecipientError


class TestSend:
    @pytest.mark.asyncio
    async def test_success_logs_one_success_row(self, mail_services, provider) -> None:
        sent = await mail_services.mailer.send("user@example.com", "Welcome", "Hello there")

        assert sent is True
        assert len(provider.sent) == 1
        logs = await mail_services.log_service.list_logs()
        assert len(logs) == 1
        assert logs[0].status == "success"
        assert logs[0].fingerprint == MailFingerprint.calculate(
            "user@example.com", "Welcome", "Hello there", ""
        )
        assert mail_services.email_logger.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_transport_failure_returns_false_and_logs_failed(
        self, mail_services, provider
    ) -> None:
        provider.error = aiosmtplib.SMTPConnectError("Connection refused")
        failures = []

        async def capture(event, data, context):
            failures.append(data["error"])

        mail_services.hook_registry.register(HookEvent.ON_MAIL_FAILED, capture)

        sent = await mail_services.mailer.send("user@example.com", "Welcome", "Hello")

        assert sent is False
        assert isinstance(failures[0], MailError)
        assert failures[0].code == "mail_failed"
        assert failures[0].data["to"] == "user@example.com"

        logs = await mail_services.log_service.list_logs()
        assert logs[0].status == "failed"
        assert "Connection refused" in logs[0].error_message
        assert json.loads(logs[0].status_detail)["data"]["subject"] == "Welcome"

    @pytest.mark.asyncio
    async def test_before_send_filter_sees_message_before_transport(
        self, mail_services, provider
    ) -> None:
        seen = []

        async def stamp(event, data, context):
            seen.append((list(provider.sent), context.send_id))
            return {**data, "headers": ["X-Stamp: 1"]}

        mail_services.hook_registry.register(HookEvent.ON_MAIL_BEFORE_SEND, stamp)

        await mail_services.mailer.send("user@example.com", "Hi", "Body")

        assert seen[0][0] == []
        assert provider.sent[0].headers == ["X-Stamp: 1"]

    @pytest.mark.asyncio
    async def test_all_firings_share_one_context(self, mail_services) -> None:
        send_ids = []

        async def record(event, data, context):
            send_ids.append(context.send_id)

        mail_services.hook_registry.register(HookEvent.ON_MAIL_BEFORE_SEND, record)
        mail_services.hook_registry.register(HookEvent.ON_MAIL_AFTER_SEND, record)

        await mail_services.mailer.send("user@example.com", "Hi", "Body", source="api")

        assert len(send_ids) == 2
        assert send_ids[0] == send_ids[1]

    @pytest.mark.asyncio
    async def test_abort_skips_transport_and_reports_failure(
        self, mail_services, provider
    ) -> None:
        failures = []

        async def block(event, data, context):
            raise AbortHookException("Recipient is blocked")

        async def capture(event, data, context):
            failures.append(data["error"])

        mail_services.hook_registry.register(HookEvent.ON_MAIL_BEFORE_SEND, block)
        mail_services.hook_registry.register(HookEvent.ON_MAIL_FAILED, capture)

        sent = await mail_services.mailer.send("user@example.com", "Hi", "Body")

        assert sent is False
        assert provider.sent == []
        assert failures[0].code == "mail_aborted"
        assert failures[0].message == "Recipient is blocked"
        logs = await mail_services.log_service.list_logs()
        assert logs[0].status == "failed"

    @pytest.mark.asyncio
    async def test_no_recipients_fails_without_transport(self, mail_services, provider) -> None:
        sent = await mail_services.mailer.send("", "Hi", "Body")

        assert sent is False
        assert provider.sent == []

    @pytest.mark.asyncio
    async def test_transport_build_error_reported_as_failure(
        self, mail_services, session_factory
    ) -> None:
        def broken_factory(options):
            raise RuntimeError("bad relay config")

        mail_services.mailer.provider_factory = broken_factory
        failures = []

        async def capture(event, data, context):
            failures.append(data["error"])

        mail_services.hook_registry.register(HookEvent.ON_MAIL_FAILED, capture)

        sent = await mail_services.mailer.send("user@example.com", "Hi", "Body")

        assert sent is False
        assert failures[0].message == "bad relay config"
        logs = await mail_services.log_service.list_logs()
        assert [log.status for log in logs] == ["failed"]
        assert mail_services.email_logger.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_raising_observer_does_not_change_result(self, mail_services) -> None:
        async def broken(event, data, context):
            raise RuntimeError("observer bug")

        mail_services.hook_registry.register(HookEvent.ON_MAIL_AFTER_SEND, broken)

        assert await mail_services.mailer.send("user@example.com", "Hi", "Body") is True

    @pytest.mark.asyncio
    async def test_logging_disabled_still_sends(
        self, mail_services, mail_options, provider
    ) -> None:
        mail_options.update(enable_log=False)

        assert await mail_services.mailer.send(["a@example.com"], "Hi", "Body") is True
        assert len(provider.sent) == 1
        assert await mail_services.log_service.count_logs() == 0

    @pytest.mark.asyncio
    async def test_identical_resend_keeps_one_row(self, mail_services) -> None:
        await mail_services.mailer.send("user@example.com", "Hi", "Body")
        await mail_services.mailer.send("USER@example.com", "hi", "Body")

        assert await mail_services.log_service.count_logs() == 1

    @pytest.mark.asyncio
    async def test_provider_built_from_current_options(
        self, mail_services, mail_options, provider
    ) -> None:
        await mail_services.mailer.send("user@example.com", "Hi", "Body")
        mail_options.update(smtp_host="relay.example.com")
        await mail_services.mailer.send("user@example.com", "Hi again", "Body")

        assert [o.smtp_host for o in provider.options_seen] == ["localhost", "relay.example.com"]


class TestSendTestEmail:
    @pytest.mark.asyncio
    async def test_sends_html_test_message(self, mail_services, provider) -> None:
        success, error = await mail_services.mailer.send_test_email(" admin@example.com ")

        assert success is True
        assert error is None
        message = provider.sent[0]
        assert message.recipients == ("admin@example.com",)
        assert message.subject == "SMTP Test Email from Test Site"
        assert message.is_html is True

    @pytest.mark.asyncio
    async def test_invalid_recipient_raises(self, mail_services, provider) -> None:
        with pytest.raises(InvalidRecipientError):
            await mail_services.mailer.send_test_email("not-an-email")

        assert provider.sent == []

    @pytest.mark.asyncio
    async def test_transport_error_returned(self, mail_services, provider) -> None:
        provider.error = aiosmtplib.SMTPAuthenticationError(535, "Bad credentials")

        success, error = await mail_services.mailer.send_test_email("admin@example.com")

        assert success is False
        assert "Bad credentials" in error
