import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef")
os.environ["ADMIN_PIN"] = "000"
os.environ["ALLOWED_RADIUS_METERS"] = "500"
for _name in ("SUPABASE_URL", "SUPABASE_KEY", "DATABASE_URL", "TWILIO_ACCOUNT_SID", "ADMIN_ALERT_PHONE"):
    os.environ.pop(_name, None)

import pytest

from tests.fakes import FakeCamera, FakeGeolocation, RIYADH, make_employee, make_stores


@pytest.fixture
def stores():
    return make_stores()


@pytest.fixture
def worker():
    return make_employee()


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def at_site():
    return FakeGeolocation(RIYADH)
