from __future__ import annotations

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from fireguardian.notifications.sms import (
    DAILY_LIMIT_MESSAGE,
    DISABLED_MESSAGE,
    NO_ELIGIBLE_MESSAGE,
    DialogSmsGateway,
    DialogTokenManager,
    SmsRecipient,
    format_phone_number,
)
from fireguardian.notifications.templates import SmsMessageType

BASE_URL = "https://sms.test/api/v1"


class FakeDialog:
    """Scripted provider: login issues tokens, sms answers from a queue."""

    def __init__(self, sms_responses):
        self.sms_responses = list(sms_responses)
        self.logins = 0
        self.sms_requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/login"):
            self.logins += 1
            return httpx.Response(
                200, json={"status": "success", "token": f"token-{self.logins}", "expiration": 3600}
            )
        self.sms_requests.append(request)
        return self.sms_responses.pop(0)


def _gateway(provider, *, enabled=True, log_writer=None, policy=None) -> DialogSmsGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(provider))
    return DialogSmsGateway(
        client,
        base_url=BASE_URL,
        username="dialog-user",
        password="dialog-pass",
        source_address="FireGuardian",
        enabled=enabled,
        log_writer=log_writer,
        policy=policy,
    )


RECIPIENTS = [
    SmsRecipient(user_id=30, phone_number="077 123 4567", user_type="client"),
    SmsRecipient(user_id=20, phone_number="+94712345678", user_type="vendor"),
]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("0771234567", "94771234567"),
        ("+94 77 123 4567", "94771234567"),
        ("771234567", "94771234567"),
    ],
)
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


@pytest.mark.asyncio
async def test_batch_send_posts_all_recipients_and_logs_each():
    provider = FakeDialog([httpx.Response(200, json={"status": "success", "comment": "Accepted"})])
    log_writer = AsyncMock()
    gateway = _gateway(provider, log_writer=log_writer)

    result = await gateway.send_sms(RECIPIENTS, "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET, "ticket", 42)

    assert result.success
    assert result.status_message == "Accepted"
    assert result.recipient_count == 2
    request = provider.sms_requests[0]
    assert request.headers["Authorization"] == "Bearer token-1"
    body = json.loads(request.content)
    assert body["sourceAddress"] == "FireGuardian"
    assert body["msisdn"] == [{"mobile": "94771234567"}, {"mobile": "94712345678"}]
    entries = log_writer.log_sms.await_args.args[0]
    assert [entry.status for entry in entries] == ["sent", "sent"]
    assert entries[0].related_entity_id == 42


@pytest.mark.asyncio
async def test_rejected_token_is_refreshed_once():
    provider = FakeDialog([httpx.Response(401), httpx.Response(200, json={"status": "1"})])
    gateway = _gateway(provider)

    result = await gateway.send_sms(RECIPIENTS[:1], "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET)

    assert result.success
    assert provider.logins == 2
    assert provider.sms_requests[-1].headers["Authorization"] == "Bearer token-2"


@pytest.mark.asyncio
async def test_second_token_failure_is_reported():
    provider = FakeDialog([httpx.Response(401), httpx.Response(401)])
    log_writer = AsyncMock()
    gateway = _gateway(provider, log_writer=log_writer)

    result = await gateway.send_sms(RECIPIENTS, "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET)

    assert not result.success
    assert result.status_code == "0"
    assert result.recipient_count == 0
    entries = log_writer.log_sms.await_args.args[0]
    assert {entry.status for entry in entries} == {"failed"}


@pytest.mark.asyncio
async def test_disabled_gateway_sends_nothing():
    provider = FakeDialog([])
    gateway = _gateway(provider, enabled=False)

    result = await gateway.send_sms(RECIPIENTS, "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET)

    assert not result.success
    assert result.status_message == DISABLED_MESSAGE
    assert provider.logins == 0


@pytest.mark.asyncio
async def test_token_is_cached_until_expiry_buffer():
    now = [1000.0]
    provider = FakeDialog([])
    client = httpx.AsyncClient(transport=httpx.MockTransport(provider))
    manager = DialogTokenManager(
        client, login_url=f"{BASE_URL}/login", username="u", password="p", clock=lambda: now[0]
    )

    assert await manager.get_access_token() == "token-1"
    now[0] += 3000
    assert await manager.get_access_token() == "token-1"
    now[0] += 560
    assert await manager.get_access_token() == "token-2"


def _policy(*, capacity=True, eligible=(30, 20)):
    policy = AsyncMock()
    policy.has_sms_capacity = AsyncMock(return_value=capacity)
    policy.eligible_sms_user_ids = AsyncMock(return_value=set(eligible))
    return policy


@pytest.mark.asyncio
async def test_non_object_provider_payload_is_a_failure():
    provider = FakeDialog([httpx.Response(200, json=["queued"])])
    log_writer = AsyncMock()
    gateway = _gateway(provider, log_writer=log_writer)

    result = await gateway.send_sms(RECIPIENTS, "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET)

    assert not result.success
    assert result.status_message == "SMS provider returned an unexpected payload"
    entries = log_writer.log_sms.await_args.args[0]
    assert {entry.status for entry in entries} == {"failed"}


@pytest.mark.asyncio
async def test_opted_out_recipients_are_dropped():
    provider = FakeDialog([httpx.Response(200, json={"status": "success"})])
    policy = _policy(eligible={30})
    gateway = _gateway(provider, policy=policy)

    result = await gateway.send_sms(RECIPIENTS, "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET)

    assert result.success
    assert result.recipient_count == 1
    assert json.loads(provider.sms_requests[0].content)["msisdn"] == [{"mobile": "94771234567"}]
    policy.eligible_sms_user_ids.assert_awaited_once_with([30, 20], SmsMessageType.HIGH_PRIORITY_TICKET)
    policy.record_sms_usage.assert_awaited_once_with(1, SmsMessageType.HIGH_PRIORITY_TICKET)


@pytest.mark.asyncio
async def test_no_eligible_recipients_skips_provider():
    provider = FakeDialog([])
    gateway = _gateway(provider, policy=_policy(eligible=()))

    result = await gateway.send_sms(RECIPIENTS, "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET)

    assert not result.success
    assert result.status_message == NO_ELIGIBLE_MESSAGE
    assert provider.logins == 0
    assert provider.sms_requests == []


@pytest.mark.asyncio
async def test_daily_limit_blocks_batch_before_login():
    provider = FakeDialog([])
    policy = _policy(capacity=False)
    gateway = _gateway(provider, policy=policy)

    result = await gateway.send_sms(RECIPIENTS, "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET)

    assert not result.success
    assert result.status_message == DAILY_LIMIT_MESSAGE
    assert result.recipient_count == 0
    policy.has_sms_capacity.assert_awaited_once_with(2)
    policy.eligible_sms_user_ids.assert_not_awaited()
    assert provider.logins == 0


@pytest.mark.asyncio
async def test_policy_lookup_error_is_reported_not_raised():
    provider = FakeDialog([])
    policy = _policy()
    policy.has_sms_capacity = AsyncMock(side_effect=ConnectionError("db gone"))
    log_writer = AsyncMock()
    gateway = _gateway(provider, log_writer=log_writer, policy=policy)

    result = await gateway.send_sms(RECIPIENTS, "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET)

    assert not result.success
    assert result.status_message == "db gone"
    assert provider.sms_requests == []
    entries = log_writer.log_sms.await_args.args[0]
    assert {entry.status for entry in entries} == {"failed"}


@pytest.mark.asyncio
async def test_usage_is_not_recorded_for_rejected_batch():
    provider = FakeDialog([httpx.Response(200, json={"status": "failed", "comment": "Insufficient balance"})])
    policy = _policy()
    gateway = _gateway(provider, policy=policy)

    result = await gateway.send_sms(RECIPIENTS, "URGENT", SmsMessageType.HIGH_PRIORITY_TICKET)

    assert not result.success
    assert result.status_message == "Insufficient balance"
    policy.record_sms_usage.assert_not_awaited()
