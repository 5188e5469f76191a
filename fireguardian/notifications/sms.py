from __future__ import annotations

import asyncio
import json
import logging
import re
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

import httpx

from fireguardian.core.config import Settings

from .log_repository import SmsLogEntry
from .templates import SmsMessageType

logger = logging.getLogger(__name__)

DISABLED_MESSAGE = "SMS service not enabled"
DAILY_LIMIT_MESSAGE = "Daily SMS limit reached"
NO_ELIGIBLE_MESSAGE = "No eligible recipients"
SUCCESS_STATUSES = frozenset({"success", "1"})
_TOKEN_ERROR_MARKERS = ("unauthorized", "invalid token", "token expired")


class SmsDeliveryError(RuntimeError):
    """Raised internally when the SMS provider rejects a call."""

    def __init__(self, message: str, *, token_error: bool = False) -> None:
        super().__init__(message)
        self.token_error = token_error


@dataclass(slots=True)
class SmsRecipient:
    user_id: int
    phone_number: str
    user_type: str


@dataclass(slots=True)
class SmsResult:
    success: bool
    status_code: str
    status_message: str
    recipient_count: int


class SmsLogWriter(Protocol):
    async def log_sms(self, entries: Sequence[SmsLogEntry]) -> bool: ...


class SmsPolicy(Protocol):
    """Opt-in preferences and the daily quota, consulted before each batch."""

    async def has_sms_capacity(self, count: int) -> bool: ...

    async def eligible_sms_user_ids(self, user_ids: Sequence[int], message_type: SmsMessageType) -> set[int]: ...

    async def record_sms_usage(self, count: int, message_type: SmsMessageType) -> None: ...


class SmsGateway(Protocol):
    async def send_sms(
        self,
        recipients: Sequence[SmsRecipient],
        message: str,
        message_type: SmsMessageType,
        related_entity_type: str | None = None,
        related_entity_id: int | None = None,
    ) -> SmsResult: ...


def format_phone_number(phone: str) -> str:
    """Normalise a local or international number to ``94XXXXXXXXX``."""

    digits = re.sub(r"\D", "", phone)
    if digits.startswith("0"):
        digits = "94" + digits[1:]
    if not digits.startswith("94"):
        digits = "94" + digits
    return digits


def _is_token_error(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _TOKEN_ERROR_MARKERS)


class DialogTokenManager:
    """Cache the provider access token and refresh it shortly before expiry."""

    EXPIRY_BUFFER_SECONDS = 60
    DEFAULT_EXPIRATION_SECONDS = 43200

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        login_url: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._login_url = login_url
        self._username = username
        self._password = password
        self._timeout = timeout
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    def _is_valid(self) -> bool:
        return self._token is not None and self._expires_at - self._clock() > self.EXPIRY_BUFFER_SECONDS

    async def get_access_token(self) -> str:
        async with self._lock:
            if self._token is None or not self._is_valid():
                self._token = await self._login()
            return self._token

    def clear_cache(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def _login(self) -> str:
        try:
            response = await self._client.post(
                self._login_url,
                json={"username": self._username, "password": self._password},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise SmsDeliveryError(f"SMS provider login failed: {exc}") from exc
        except ValueError as exc:
            raise SmsDeliveryError("SMS provider login returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise SmsDeliveryError("SMS provider login returned an unexpected payload")
        if data.get("status") != "success" or not data.get("token"):
            raise SmsDeliveryError(
                f"SMS provider login failed: {data.get('comment') or 'unknown error'} "
                f"(Code: {data.get('errCode') or 'n/a'})"
            )
        expiration = data.get("expiration") or self.DEFAULT_EXPIRATION_SECONDS
        self._expires_at = self._clock() + float(expiration)
        logger.info("SMS provider token refreshed; valid for %ss", expiration)
        return str(data["token"])


class DialogSmsGateway:
    """Batch SMS delivery through the Dialog eSMS HTTP API."""

    MAX_ATTEMPTS = 2

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str,
        username: str | None,
        password: str | None,
        source_address: str,
        enabled: bool = True,
        timeout: float = 10.0,
        login_timeout: float = 30.0,
        log_writer: SmsLogWriter | None = None,
        policy: SmsPolicy | None = None,
        token_manager: DialogTokenManager | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._source_address = source_address
        self._timeout = timeout
        self._log_writer = log_writer
        self._policy = policy
        self.enabled = bool(enabled and username and password)
        self._token_manager = token_manager or DialogTokenManager(
            client,
            login_url=f"{self._base_url}/login",
            username=username or "",
            password=password or "",
            timeout=login_timeout,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: httpx.AsyncClient,
        *,
        log_writer: SmsLogWriter | None = None,
        policy: SmsPolicy | None = None,
    ) -> DialogSmsGateway:
        return cls(
            client,
            base_url=settings.sms_api_base_url,
            username=settings.sms_username,
            password=settings.sms_password,
            source_address=settings.sms_source_address,
            enabled=settings.sms_enabled,
            timeout=settings.sms_timeout_seconds,
            login_timeout=settings.sms_login_timeout_seconds,
            log_writer=log_writer,
            policy=policy,
        )

    async def send_sms(
        self,
        recipients: Sequence[SmsRecipient],
        message: str,
        message_type: SmsMessageType,
        related_entity_type: str | None = None,
        related_entity_id: int | None = None,
    ) -> SmsResult:
        if not self.enabled:
            logger.info("SMS disabled; dropping %s message", message_type.value)
            return SmsResult(success=False, status_code="0", status_message=DISABLED_MESSAGE, recipient_count=0)
        if not recipients:
            return SmsResult(success=False, status_code="0", status_message="No recipients", recipient_count=0)

        if self._policy is not None:
            try:
                if not await self._policy.has_sms_capacity(len(recipients)):
                    logger.error("Daily SMS limit reached; dropping %s message", message_type.value)
                    return SmsResult(
                        success=False, status_code="0", status_message=DAILY_LIMIT_MESSAGE, recipient_count=0
                    )
                eligible = await self._policy.eligible_sms_user_ids(
                    [recipient.user_id for recipient in recipients], message_type
                )
            except Exception as exc:
                logger.exception("SMS policy lookup failed for %s message", message_type.value)
                await self._write_logs(
                    recipients,
                    message,
                    message_type,
                    status="failed",
                    error_message=str(exc),
                    related_entity_type=related_entity_type,
                    related_entity_id=related_entity_id,
                )
                return SmsResult(success=False, status_code="0", status_message=str(exc), recipient_count=0)
            recipients = [recipient for recipient in recipients if recipient.user_id in eligible]
            if not recipients:
                logger.info("No eligible recipients for %s message", message_type.value)
                return SmsResult(
                    success=False, status_code="0", status_message=NO_ELIGIBLE_MESSAGE, recipient_count=0
                )

        attempt = 1
        while True:
            try:
                status_code, status_message, response = await self._post(recipients, message)
                break
            except SmsDeliveryError as exc:
                if exc.token_error and attempt < self.MAX_ATTEMPTS:
                    logger.warning("SMS token rejected; refreshing and retrying")
                    self._token_manager.clear_cache()
                    attempt += 1
                    continue
                logger.error("SMS %s to %d recipient(s) failed: %s", message_type.value, len(recipients), exc)
                await self._write_logs(
                    recipients,
                    message,
                    message_type,
                    status="failed",
                    error_message=str(exc),
                    related_entity_type=related_entity_type,
                    related_entity_id=related_entity_id,
                )
                return SmsResult(success=False, status_code="0", status_message=str(exc), recipient_count=0)

        success = status_code in SUCCESS_STATUSES
        await self._write_logs(
            recipients,
            message,
            message_type,
            status="sent" if success else "failed",
            dialog_response=json.dumps(response, default=str),
            dialog_status_code=status_code,
            error_message=None if success else status_message,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
        )
        logger.info(
            "SMS %s to %d recipient(s): %s (%s)",
            message_type.value,
            len(recipients),
            status_message,
            status_code,
        )
        if success and self._policy is not None:
            try:
                await self._policy.record_sms_usage(len(recipients), message_type)
            except Exception:
                logger.exception("Failed to record SMS usage for %d message(s)", len(recipients))
        return SmsResult(
            success=success,
            status_code=status_code,
            status_message=status_message,
            recipient_count=len(recipients),
        )

    async def _post(self, recipients: Sequence[SmsRecipient], message: str) -> tuple[str, str, dict[str, Any]]:
        token = await self._token_manager.get_access_token()
        payload = {
            "sourceAddress": self._source_address,
            "message": message,
            "transaction_id": f"{int(time.time() * 1000)}-{secrets.token_hex(4)}",
            "msisdn": [{"mobile": format_phone_number(recipient.phone_number)} for recipient in recipients],
        }
        try:
            response = await self._client.post(
                f"{self._base_url}/sms",
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise SmsDeliveryError(f"SMS request failed: {exc}") from exc

        if response.status_code == 401:
            raise SmsDeliveryError("Unauthorized", token_error=True)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = response.text or str(exc)
            raise SmsDeliveryError(f"SMS request failed: {detail}", token_error=_is_token_error(detail)) from exc
        try:
            data = response.json()
        except ValueError as exc:
            raise SmsDeliveryError("SMS provider returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise SmsDeliveryError("SMS provider returned an unexpected payload")
        status_code = str(data.get("status") or "success")
        status_message = str(data.get("comment") or "SMS sent successfully")
        if status_code not in SUCCESS_STATUSES and _is_token_error(status_message):
            raise SmsDeliveryError(status_message, token_error=True)
        return status_code, status_message, data

    async def _write_logs(
        self,
        recipients: Sequence[SmsRecipient],
        message: str,
        message_type: SmsMessageType,
        *,
        status: str,
        dialog_response: str | None = None,
        dialog_status_code: str | None = None,
        error_message: str | None = None,
        related_entity_type: str | None = None,
        related_entity_id: int | None = None,
    ) -> None:
        if self._log_writer is None:
            return
        entries = [
            SmsLogEntry(
                user_id=recipient.user_id,
                phone_number=recipient.phone_number,
                message=message,
                message_type=message_type.value,
                status=status,
                dialog_response=dialog_response,
                dialog_status_code=dialog_status_code,
                error_message=error_message,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
            )
            for recipient in recipients
        ]
        await self._log_writer.log_sms(entries)
