"""
Attendance check-in/out capture flow.

One flow instance covers one worker interaction:

    IDLE -> ACQUIRING_CAMERA -> FRAMING -> CAPTURING -> ACQUIRING_LOCATION
         -> SUBMITTING -> COMPLETED | FAILED

``cancel()`` ends the flow in IDLE from any non-terminal state. The camera is
held in an exit stack from ``start()`` until the flow ends and is released on
every exit path. Nothing is handed to the log book unless photo, location and
geofence status are all in hand.
"""

import asyncio
import logging
import uuid
from contextlib import AsyncExitStack
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from config import settings
from schemas.attendance import CapturedPhoto, Coordinate, Direction, LogEntry
from schemas.employee import Employee
from services.devices import CameraProvider, CameraStream, GeolocationProvider
from services.geofence import evaluate_geofence
from services.log_book import LogBook, SubmissionResult
from utils.exceptions import (
    FlowInProgress,
    InvalidTransition,
    LocationTimeout,
)

logger = logging.getLogger(__name__)


class FlowState(str, Enum):
    IDLE = "IDLE"
    ACQUIRING_CAMERA = "ACQUIRING_CAMERA"
    FRAMING = "FRAMING"
    CAPTURING = "CAPTURING"
    ACQUIRING_LOCATION = "ACQUIRING_LOCATION"
    SUBMITTING = "SUBMITTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATES = {FlowState.COMPLETED, FlowState.FAILED}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CaptureFlow:
    def __init__(
        self,
        employee: Employee,
        direction: Direction,
        camera: CameraProvider,
        geolocation: GeolocationProvider,
        log_book: LogBook,
        radius_m: Optional[float] = None,
        location_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.employee = employee
        self.direction = Direction(direction)
        self.camera = camera
        self.geolocation = geolocation
        self.log_book = log_book
        self.radius_m = settings.ALLOWED_RADIUS_METERS if radius_m is None else radius_m
        self.location_timeout = settings.LOCATION_TIMEOUT_SECONDS if location_timeout is None else location_timeout
        self.clock = clock

        self.state = FlowState.IDLE
        self.history: List[FlowState] = [FlowState.IDLE]
        self.photo: Optional[CapturedPhoto] = None
        self.failure: Optional[Exception] = None
        self.result: Optional[SubmissionResult] = None
        self.cancelled = False

        self._stack: Optional[AsyncExitStack] = None
        self._stream: Optional[CameraStream] = None
        self._pending_location: Optional[asyncio.Future] = None

    @property
    def finished(self) -> bool:
        return self.cancelled or self.state in TERMINAL_STATES

    def _move(self, state: FlowState) -> None:
        self.state = state
        self.history.append(state)

    def _expect(self, *states: FlowState) -> None:
        if self.finished or self.state not in states:
            raise InvalidTransition(f"Cannot do that while flow is {self.state.value}")

    async def _release(self) -> None:
        stack, self._stack, self._stream = self._stack, None, None
        if stack is not None:
            await stack.aclose()

    async def _fail(self, error: Exception) -> None:
        if self._pending_location is not None and not self._pending_location.done():
            self._pending_location.cancel()
        await self._release()
        self.failure = error
        self._move(FlowState.FAILED)
        logger.warning(f"⚠️ Capture flow for {self.employee.id} failed: {getattr(error, 'code', type(error).__name__)} {error}")

    async def start(self) -> None:
        """Acquire the camera and show the live preview."""
        self._expect(FlowState.IDLE)
        self._move(FlowState.ACQUIRING_CAMERA)
        stack = AsyncExitStack()
        try:
            self._stream = await stack.enter_async_context(self.camera.session())
        except Exception as e:
            await stack.aclose()
            await self._fail(e)
            raise
        self._stack = stack
        self._move(FlowState.FRAMING)

    async def capture(self) -> CapturedPhoto:
        """Freeze the current frame."""
        self._expect(FlowState.FRAMING)
        self._move(FlowState.CAPTURING)
        try:
            self.photo = await self._stream.capture_frame()
        except Exception as e:
            await self._fail(e)
            raise
        return self.photo

    def retake(self) -> None:
        self._expect(FlowState.CAPTURING)
        self.photo = None
        self._move(FlowState.FRAMING)

    async def confirm(self) -> Optional[SubmissionResult]:
        """
        Fix the position, evaluate the geofence and submit the log entry.

        Returns None when the flow was cancelled while waiting for the
        position fix. Any other error ends the flow in FAILED and is
        re-raised, so the flow always reaches a terminal state. A
        persistence failure is not raised: it comes back as an unconfirmed
        ``SubmissionResult``.
        """
        self._expect(FlowState.CAPTURING)
        self._move(FlowState.ACQUIRING_LOCATION)
        self._pending_location = asyncio.ensure_future(self.geolocation.current_position())
        try:
            location = await asyncio.wait_for(self._pending_location, self.location_timeout)
        except asyncio.TimeoutError:
            error = LocationTimeout(f"No position fix within {self.location_timeout}s")
            await self._fail(error)
            raise error
        except asyncio.CancelledError:
            await self._release()
            if self.cancelled:
                return None
            raise
        except Exception as e:
            await self._fail(e)
            raise
        finally:
            self._pending_location = None

        self._move(FlowState.SUBMITTING)
        try:
            entry = self._build_entry(location)
        except Exception as e:
            await self._fail(e)
            raise

        await self._release()
        try:
            self.result = await self.log_book.submit(entry)
        except Exception as e:
            await self._fail(e)
            raise
        self._move(FlowState.COMPLETED)
        return self.result

    def _build_entry(self, location: Coordinate) -> LogEntry:
        status = evaluate_geofence(self.employee.site, location, self.radius_m)
        return LogEntry(
            id=f"log_{uuid.uuid4().hex}",
            employee_id=self.employee.id,
            name=self.employee.name,
            timestamp=self.clock(),
            direction=self.direction,
            photo=self.photo,
            location=location,
            status=status,
            department_id=self.employee.department_id,
        )

    async def cancel(self) -> None:
        """Abandon the flow; no record is created."""
        if self.finished:
            return
        self.cancelled = True
        if self._pending_location is not None and not self._pending_location.done():
            self._pending_location.cancel()
        await self._release()
        self._move(FlowState.IDLE)
        logger.info(f"🛑 Capture flow for {self.employee.id} cancelled")

    async def run(self) -> Optional[SubmissionResult]:
        """Start, capture and confirm in one go, for clients that post a ready frame."""
        await self.start()
        await self.capture()
        return await self.confirm()


class FlowRegistry:
    """At most one unfinished capture flow per worker."""

    def __init__(self):
        self._active: Dict[str, CaptureFlow] = {}

    def begin(self, flow: CaptureFlow) -> CaptureFlow:
        current = self._active.get(flow.employee.id)
        if current is not None and not current.finished:
            raise FlowInProgress(f"Capture flow already active for {flow.employee.id}")
        self._active[flow.employee.id] = flow
        return flow

    def active(self, employee_id: str) -> Optional[CaptureFlow]:
        flow = self._active.get(employee_id)
        if flow is None or flow.finished:
            return None
        return flow
