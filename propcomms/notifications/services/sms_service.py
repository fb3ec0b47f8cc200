"""SMS transports.

Supports:
- Twilio (REST API over httpx)
- Console (development; logs instead of sending)

SMS_BACKEND selects the transport; an empty value or missing Twilio
credentials mean SMS is not configured and is never attempted.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from propcomms.core.config import settings
from propcomms.notifications.exceptions import ChannelDeliveryError

logger = logging.getLogger(__name__)


@dataclass
class SmsMessage:
    to: str
    body: str


def normalize_phone(phone: str) -> str:
    """Strip common formatting characters, keeping a leading '+'."""
    return phone.replace(" ", "").replace("-", "").replace("(", "").replace(")", "").strip()


class SmsService(ABC):
    @abstractmethod
    async def send_sms(self, message: SmsMessage) -> bool:
        pass


class ConsoleSmsService(SmsService):
    async def send_sms(self, message: SmsMessage) -> bool:
        logger.info("SMS (console backend) to=%s body=%s", message.to, message.body)
        return True


class TwilioSmsService(SmsService):
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def send_sms(self, message: SmsMessage) -> bool:
        url = f"{self.api_url}/Accounts/{self.account_sid}/Messages.json"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    url,
                    auth=(self.account_sid, self.auth_token),
                    data={
                        "From": self.from_number,
                        "To": normalize_phone(message.to),
                        "Body": message.body,
                    },
                )
            except httpx.HTTPError as exc:
                raise ChannelDeliveryError("sms", f"{type(exc).__name__}: {exc}") from exc

        if response.status_code in (200, 201):
            return True

        try:
            error_data = response.json() if response.content else {}
        except ValueError:
            error_data = {}
        error_msg = error_data.get("message", f"HTTP {response.status_code}")
        if response.status_code in (401, 403):
            logger.error(
                "sms_auth_failed provider=twilio status=%s message=%s",
                response.status_code,
                error_msg,
            )
        raise ChannelDeliveryError("sms", f"HTTP {response.status_code}: {error_msg}")


def get_sms_service() -> SmsService | None:
    """Return the configured SMS transport, or None when SMS is disabled."""
    if not settings.sms_configured:
        return None
    if settings.SMS_BACKEND == "console":
        return ConsoleSmsService()
    return TwilioSmsService(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        from_number=settings.TWILIO_FROM_NUMBER,
        api_url=settings.TWILIO_API_URL,
        timeout=settings.SMS_TIMEOUT_SECONDS,
    )
