"""
Outbound SMS providers.

The active provider is chosen by the ``SMS_PROVIDER`` setting (a dotted path).
``ConsoleSmsProvider`` only logs and is the default outside production.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from common.utils import is_valid_e164

logger = logging.getLogger(__name__)


class NotificationDeliveryError(Exception):
    """Raised when a notification for a committed offer change could not be delivered."""
    pass


@dataclass
class SmsResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    provider_response: Optional[Dict[str, Any]] = None
    timestamp: Any = field(default_factory=timezone.now)


class SmsProvider:
    """Interface every SMS provider implements."""
    name = "base"

    def send_sms(self, to: str, message: str) -> SmsResult:
        raise NotImplementedError

    def health_check(self) -> bool:
        return True


class ConsoleSmsProvider(SmsProvider):
    """Logs outgoing messages instead of sending them."""
    name = "console"

    def __init__(self):
        self.sent = []

    def send_sms(self, to: str, message: str) -> SmsResult:
        if not is_valid_e164(to):
            return SmsResult(success=False, error=f"Invalid phone number format: {to}")
        message_id = f"console-{timezone.now():%Y%m%d%H%M%S%f}"
        self.sent.append((to, message))
        logger.info("[SMS %s] to %s: %s", message_id, to, message)
        return SmsResult(success=True, message_id=message_id)


class SignalWireSmsProvider(SmsProvider):
    """Sends through the SignalWire LaML (Twilio-compatible) Messages API."""
    name = "signalwire"

    def __init__(self):
        self.space_url = settings.SIGNALWIRE_SPACE_URL.rstrip('/')
        self.project_id = settings.SIGNALWIRE_PROJECT_ID
        self.token = settings.SIGNALWIRE_TOKEN
        self.from_number = settings.SIGNALWIRE_FROM_NUMBER
        self.timeout = settings.SMS_REQUEST_TIMEOUT_SECONDS

        if not self.is_configured:
            logger.warning("SignalWire credentials not fully configured")

    @property
    def is_configured(self) -> bool:
        return bool(self.space_url and self.project_id and self.token)

    @property
    def messages_url(self) -> str:
        base = self.space_url if self.space_url.startswith('http') else f"https://{self.space_url}"
        return f"{base}/api/laml/2010-04-01/Accounts/{self.project_id}/Messages.json"

    def send_sms(self, to: str, message: str) -> SmsResult:
        if not self.is_configured:
            return SmsResult(success=False, error="SignalWire credentials not configured")
        if not is_valid_e164(to):
            return SmsResult(success=False, error=f"Invalid phone number format: {to}")

        try:
            response = requests.post(
                self.messages_url,
                data={'From': self.from_number, 'To': to, 'Body': message},
                auth=(self.project_id, self.token),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("SignalWire SMS to %s failed: %s", to, exc)
            return SmsResult(success=False, error=str(exc))

        logger.info("SignalWire SMS sent to %s (sid %s)", to, data.get('sid'))
        return SmsResult(success=True, message_id=data.get('sid'), provider_response=data)

    def health_check(self) -> bool:
        if not self.is_configured:
            return False
        base = self.messages_url.rsplit('/Messages.json', 1)[0]
        try:
            response = requests.get(f"{base}.json", auth=(self.project_id, self.token), timeout=self.timeout)
        except requests.RequestException:
            logger.exception("SignalWire health check failed")
            return False
        return response.ok


_provider = None


def get_sms_provider() -> SmsProvider:
    """Return the configured provider, built once per process."""
    global _provider
    if _provider is None:
        _provider = import_string(settings.SMS_PROVIDER)()
    return _provider


def reset_sms_provider():
    global _provider
    _provider = None
