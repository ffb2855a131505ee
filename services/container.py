import logging
from functools import lru_cache

from fastapi import HTTPException, status

from database import supabase
from services.auth_service import AuthService
from services.badge_service import BadgeService
from services.capture_flow import FlowRegistry
from services.dashboard_service import DashboardService
from services.devices import DeviceRegistry
from services.events import EventBus
from services.log_book import LogBook
from services.notification_service import NotificationService
from services.stores import Stores, supabase_stores

logger = logging.getLogger(__name__)


class AppContainer:
    """Process-wide services wired onto one set of stores."""

    def __init__(self, stores: Stores, notifications: NotificationService = None):
        self.stores = stores
        self.events = EventBus()
        self.log_book = LogBook(stores.logs, self.events)
        self.flows = FlowRegistry()
        self.devices = DeviceRegistry()
        self.auth = AuthService(stores.employees)
        self.badges = BadgeService(stores.employees)
        self.dashboard = DashboardService(stores, self.log_book)
        self.notifications = notifications or NotificationService()
        self.notifications.subscribe(self.events)


@lru_cache()
def _build_container() -> AppContainer:
    logger.info("🧩 Wiring services onto Supabase tables")
    return AppContainer(supabase_stores(supabase))


def get_container() -> AppContainer:
    """FastAPI dependency; answers 503 while the hosted backend is not configured."""
    if supabase is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage backend is not configured"
        )
    return _build_container()
