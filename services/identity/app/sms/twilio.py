"""
Twilio Verify V2 + Messaging — async OTP delivery and verification via httpx.

Uses Twilio's managed Verify service: OTP generation, SMS delivery, and
code verification are handled entirely by Twilio.  We never see or store
the generated code; only the approval of a submitted code is recorded
(see ``app.auth.service.mark_phone_verified``).

Public methods never raise: transport and provider failures come back as a
``GatewayResult`` carrying the provider's status and message, so the
controller decides how each outcome maps onto an HTTP response.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.auth.phone import mask_phone, to_e164
from app.config import Settings

logger = logging.getLogger(__name__)

_VERIFY_BASE = "https://verify.twilio.com/v2/Services"
_MESSAGES_BASE = "https://api.twilio.com/2010-04-01/Accounts"
_TIMEOUT_SECONDS = 15.0

APPROVED = "approved"
NOT_FOUND = "not_found"
MAX_ATTEMPTS = "max_attempts"

# Twilio error code for "Max check attempts reached"
_MAX_CHECK_ATTEMPTS_CODE = 60202
# Account or credential problems, not something the user can fix
_CREDENTIAL_STATUSES = {401, 403}


@dataclass(frozen=True)
class GatewayResult:
    """Outcome of a provider call: ``status`` is Twilio's own status string."""

    success: bool
    status: str | None = None
    error: str | None = None


def is_configured(settings: Settings) -> bool:
    """Return True when all three Twilio Verify credentials are present."""
    return bool(
        settings.twilio_account_sid
        and settings.twilio_auth_token
        and settings.twilio_verify_service_sid
    )


def _json_body(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _provider_message(response: httpx.Response) -> str:
    message = _json_body(response).get("message")
    return str(message or response.text[:300] or f"HTTP {response.status_code}")


def _denial_status(response: httpx.Response) -> str:
    code = _json_body(response).get("code")
    if code == _MAX_CHECK_ATTEMPTS_CODE:
        return MAX_ATTEMPTS
    return str(code) if code else "denied"


class TwilioGateway:
    """OTP gateway adapter: ``request_code`` / ``check_code`` / ``send_message``."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=_TIMEOUT_SECONDS,
            auth=(self._settings.twilio_account_sid, self._settings.twilio_auth_token),
            transport=self._transport,
        )

    async def request_code(self, phone_digits: str) -> GatewayResult:
        """Ask Twilio to generate and send a code via SMS."""
        if not is_configured(self._settings):
            return GatewayResult(success=False, error="OTP provider is not configured")

        url = f"{_VERIFY_BASE}/{self._settings.twilio_verify_service_sid}/Verifications"
        try:
            async with self._client() as client:
                r = await client.post(url, data={"To": to_e164(phone_digits), "Channel": "sms"})
        except httpx.HTTPError as exc:
            logger.error("Twilio request_code failed for %s: %s", mask_phone(phone_digits), exc)
            return GatewayResult(success=False, error=str(exc) or "Failed to send OTP")

        if r.status_code >= 400:
            message = _provider_message(r)
            logger.error("Twilio request_code error %s: %s", r.status_code, message)
            return GatewayResult(success=False, error=message)

        status = _json_body(r).get("status")
        logger.info("OTP sent to %s (status=%s)", mask_phone(phone_digits), status)
        return GatewayResult(success=True, status=status)

    async def check_code(self, phone_digits: str, code: str) -> GatewayResult:
        """
        Verify a submitted code.

        ``success`` is True only when Twilio reports ``approved``.  A 404 means
        there is no pending verification for the number (expired, already
        approved, or never requested) and is reported as a denial, as is any
        other 4xx about the code itself (e.g. 429 after too many attempts).
        Credential failures and 5xx come back without a status.
        """
        if not is_configured(self._settings):
            return GatewayResult(success=False, error="OTP provider is not configured")

        url = f"{_VERIFY_BASE}/{self._settings.twilio_verify_service_sid}/VerificationChecks"
        try:
            async with self._client() as client:
                r = await client.post(url, data={"To": to_e164(phone_digits), "Code": code})
        except httpx.HTTPError as exc:
            logger.error("Twilio check_code failed for %s: %s", mask_phone(phone_digits), exc)
            return GatewayResult(success=False, error=str(exc) or "Failed to verify OTP")

        if r.status_code == 404:
            return GatewayResult(success=False, status=NOT_FOUND, error="Invalid OTP")
        if 400 <= r.status_code < 500 and r.status_code not in _CREDENTIAL_STATUSES:
            message = _provider_message(r)
            logger.info(
                "OTP check for %s denied (%s): %s",
                mask_phone(phone_digits),
                r.status_code,
                message,
            )
            return GatewayResult(success=False, status=_denial_status(r), error=message)
        if r.status_code >= 400:
            message = _provider_message(r)
            logger.error("Twilio check_code error %s: %s", r.status_code, message)
            return GatewayResult(success=False, error=message)

        status = _json_body(r).get("status")
        logger.info("OTP check for %s: %s", mask_phone(phone_digits), status)
        if status != APPROVED:
            return GatewayResult(success=False, status=status, error="Invalid OTP")
        return GatewayResult(success=True, status=status)

    async def send_message(self, phone_digits: str, body: str) -> bool:
        """Send a plain SMS from TWILIO_PHONE_NUMBER.  Returns False when unconfigured or failing."""
        sender = self._settings.twilio_phone_number
        if not sender or not self._settings.twilio_account_sid:
            return False

        url = f"{_MESSAGES_BASE}/{self._settings.twilio_account_sid}/Messages.json"
        try:
            async with self._client() as client:
                r = await client.post(
                    url,
                    data={"To": to_e164(phone_digits), "From": sender, "Body": body},
                )
        except httpx.HTTPError as exc:
            logger.warning("Twilio send_message failed for %s: %s", mask_phone(phone_digits), exc)
            return False
        if r.status_code >= 400:
            logger.warning(
                "Twilio send_message error %s: %s", r.status_code, _provider_message(r)
            )
            return False
        return True
