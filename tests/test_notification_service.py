import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

from twilio.base.exceptions import TwilioRestException

from schemas.attendance import AttendanceStatus, CapturedPhoto, Direction, LogEntry
from services.events import EventBus, LogCreated
from services.notification_service import NotificationService
from tests.fakes import NORTH_OF_RIYADH


class FakeMessages:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def create(self, body, from_, to):
        if self.error is not None:
            raise self.error
        self.sent.append({"body": body, "to": to})


def fake_client(error=None):
    return SimpleNamespace(messages=FakeMessages(error))


def log(status):
    return LogEntry(
        id="log_1", employee_id="EMP-1", name="Ahmed",
        timestamp=datetime(2026, 3, 1, 8, 15, tzinfo=timezone.utc), direction=Direction.IN,
        photo=CapturedPhoto(data=b"jpeg"), location=NORTH_OF_RIYADH, status=status,
    )


def publish(service, status):
    events = EventBus()
    service.subscribe(events)
    asyncio.run(events.publish(LogCreated(log(status))))


def test_out_of_bounds_log_alerts_the_admin():
    client = fake_client()
    publish(NotificationService(client=client, admin_phone="0551234567"), AttendanceStatus.OUT_OF_BOUNDS)

    assert len(client.messages.sent) == 1
    sms = client.messages.sent[0]
    assert sms["to"] == "+966551234567"
    assert "Ahmed" in sms["body"] and "08:15" in sms["body"]


def test_present_log_sends_nothing():
    client = fake_client()
    publish(NotificationService(client=client, admin_phone="+966551234567"), AttendanceStatus.PRESENT)
    assert client.messages.sent == []


def test_disabled_without_admin_phone():
    service = NotificationService(client=fake_client(), admin_phone=None)
    assert not service.enabled
    publish(service, AttendanceStatus.OUT_OF_BOUNDS)
    assert service.twilio_client.messages.sent == []


def test_twilio_rejection_is_reported_not_raised():
    error = TwilioRestException(status=400, uri="/Messages", msg="invalid number")
    service = NotificationService(client=fake_client(error), admin_phone="+966551234567")
    assert asyncio.run(service.send_sms("+966551234567", "hi")) is False


def test_network_failure_is_reported_not_raised():
    client = fake_client(ConnectionError("network down"))
    service = NotificationService(client=client, admin_phone="+966551234567")

    assert asyncio.run(service.send_sms("+966551234567", "hi")) is False
    publish(service, AttendanceStatus.OUT_OF_BOUNDS)
    assert client.messages.sent == []
