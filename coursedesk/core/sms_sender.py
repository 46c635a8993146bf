import httpx
import logging
from dataclasses import dataclass
from typing import Optional

from coursedesk.core import config
from coursedesk.core.exceptions import SmsDeliveryError
from coursedesk.core.logging_utils import error_tracker

logger = logging.getLogger(__name__)

CONSOLE_PROVIDER_NAME = "Console (Simulation)"


@dataclass
class SmsResult:
    success: bool
    provider: str
    error: Optional[str] = None


def _raise_for_status(response: httpx.Response, provider: str):
    if response.is_error:
        logger.error(f"{provider} responded {response.status_code}: {response.text}")
        raise SmsDeliveryError(provider, f"{provider} SMS failed")


async def _send_msg91(client: httpx.AsyncClient, phone: str, message: str) -> str:
    if not config.MSG91_API_KEY or not config.MSG91_SENDER_ID:
        raise SmsDeliveryError("msg91", "MSG91 credentials not configured")

    response = await client.post(
        "https://api.msg91.com/api/v5/flow/",
        headers={"authkey": config.MSG91_API_KEY},
        json={
            "sender": config.MSG91_SENDER_ID,
            "short_url": "0",
            "mobiles": phone,
            "message": message,
        },
    )
    _raise_for_status(response, "MSG91")
    return "MSG91"


async def _send_fast2sms(client: httpx.AsyncClient, phone: str, message: str) -> str:
    if not config.FAST2SMS_API_KEY:
        raise SmsDeliveryError("fast2sms", "Fast2SMS credentials not configured")

    response = await client.post(
        "https://www.fast2sms.com/dev/bulkV2",
        headers={"authorization": config.FAST2SMS_API_KEY},
        json={
            "route": "q",
            "message": message,
            "language": "english",
            "flash": 0,
            "numbers": phone,
        },
    )
    _raise_for_status(response, "Fast2SMS")
    return "Fast2SMS"


async def _send_textlocal(client: httpx.AsyncClient, phone: str, message: str) -> str:
    if not config.TEXTLOCAL_API_KEY or not config.TEXTLOCAL_SENDER:
        raise SmsDeliveryError("textlocal", "TextLocal credentials not configured")

    response = await client.post(
        "https://api.textlocal.in/send/",
        data={
            "apikey": config.TEXTLOCAL_API_KEY,
            "numbers": phone,
            "message": message,
            "sender": config.TEXTLOCAL_SENDER,
        },
    )
    _raise_for_status(response, "TextLocal")
    return "TextLocal"


async def _send_twilio(client: httpx.AsyncClient, phone: str, message: str) -> str:
    if (
        not config.TWILIO_ACCOUNT_SID
        or not config.TWILIO_AUTH_TOKEN
        or not config.TWILIO_PHONE_NUMBER
    ):
        raise SmsDeliveryError("twilio", "Twilio credentials not configured")

    response = await client.post(
        f"https://api.twilio.com/2010-04-01/Accounts/{config.TWILIO_ACCOUNT_SID}/Messages.json",
        auth=(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN),
        data={
            "From": config.TWILIO_PHONE_NUMBER,
            "To": f"+91{phone}",
            "Body": message,
        },
    )
    _raise_for_status(response, "Twilio")
    return "Twilio"


PROVIDER_SENDERS = {
    "msg91": _send_msg91,
    "fast2sms": _send_fast2sms,
    "textlocal": _send_textlocal,
    "twilio": _send_twilio,
}


async def send_sms(phone: str, message: str, provider: str = None) -> SmsResult:
    """
    Send an SMS through the configured provider.

    Provider failures never propagate: the message is written to the log
    instead and the result carries the provider error.

    Args:
        phone: 10-digit mobile number
        message: Message text
        provider: Overrides SMS_PROVIDER

    Returns:
        SmsResult
    """
    provider = (provider or config.SMS_PROVIDER).lower()
    sender = PROVIDER_SENDERS.get(provider)

    if sender is None:
        logger.info(f"📱 SMS Reminder to {phone}: {message}")
        return SmsResult(success=True, provider=CONSOLE_PROVIDER_NAME)

    try:
        async with httpx.AsyncClient(timeout=config.SMS_TIMEOUT) as client:
            provider_name = await sender(client, phone, message)

    except (SmsDeliveryError, httpx.HTTPError) as e:
        error_message = e.message if isinstance(e, SmsDeliveryError) else str(e)
        logger.error(f"SMS Error ({provider}): {error_message}")
        error_tracker.track_error(
            error_type="SMS_DELIVERY_ERROR",
            error_message=error_message,
            context={"provider": provider, "phone": phone},
        )
        logger.info(f"📱 SMS Fallback to {phone}: {message}")
        return SmsResult(success=False, provider=provider, error=error_message)

    logger.info(f"SMS sent via {provider_name} to {phone}")
    return SmsResult(success=True, provider=provider_name)
