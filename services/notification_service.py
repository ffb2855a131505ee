import asyncio
import logging
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from config import settings
from schemas.attendance import AttendanceStatus
from services.events import EventBus, LogCreated

logger = logging.getLogger(__name__)


class NotificationService:
    """
    SMS alerts for the admin: a worker checked in or out away from their site.
    Silently inactive when Twilio or the admin phone is not configured.
    """

    def __init__(self, client: Optional[Client] = None, admin_phone: Optional[str] = None):
        self.twilio_client = client
        self.admin_phone = admin_phone or settings.ADMIN_ALERT_PHONE
        if self.twilio_client is None:
            self._initialize_twilio()

    def _initialize_twilio(self):
        """Initialize Twilio client for SMS"""
        if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            self.twilio_client = Client(
                settings.TWILIO_ACCOUNT_SID,
                settings.TWILIO_AUTH_TOKEN
            )
            logger.info("✅ Twilio client initialized")

    @property
    def enabled(self) -> bool:
        return self.twilio_client is not None and bool(self.admin_phone)

    def subscribe(self, events: EventBus) -> None:
        events.subscribe(self.on_log_created, LogCreated)

    async def on_log_created(self, event: LogCreated) -> None:
        entry = event.entry
        if entry.status != AttendanceStatus.OUT_OF_BOUNDS or not self.enabled:
            return
        direction = "check-in" if entry.direction.value == "IN" else "check-out"
        message = (
            f"Site alert: {entry.name} recorded a {direction} outside the assigned worksite "
            f"({entry.location.lat:.5f}, {entry.location.lng:.5f}) at {entry.timestamp:%H:%M}."
        )
        await self.send_sms(self.admin_phone, message)

    async def send_sms(self, phone_number: str, message: str) -> bool:
        """Send SMS via Twilio. Failures are logged, never raised into the caller."""
        if not self.twilio_client:
            return False

        # Ensure phone number has country code
        if not phone_number.startswith('+'):
            phone_number = f'{settings.DEFAULT_COUNTRY_CODE}{phone_number.lstrip("0")}'

        try:
            await asyncio.to_thread(
                self.twilio_client.messages.create,
                body=message,
                from_=settings.TWILIO_PHONE_NUMBER,
                to=phone_number
            )
        except TwilioRestException as e:
            logger.error(f"❌ SMS rejected by Twilio ({e.status}): {e.msg}")
            return False
        except Exception as e:
            logger.error(f"❌ SMS send failed: {e!r}")
            return False
        logger.info(f"📨 Alert SMS sent to {phone_number}")
        return True
