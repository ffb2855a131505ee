"""
Device providers for the capture flow.

The flow never touches hardware directly: it receives a camera provider and
a geolocation provider. Cameras are acquired through ``session()``, an async
context manager that always releases the device on exit. A shared
``DeviceRegistry`` makes acquisition exclusive; a second holder fails fast
with ``DeviceBusy`` instead of queueing.
"""

import asyncio
import base64
import binascii
import logging
from contextlib import asynccontextmanager
from typing import AsyncContextManager, Optional, Protocol, Set

import cv2
import numpy as np

from config import settings
from schemas.attendance import CapturedPhoto, Coordinate
from utils.exceptions import (
    DeviceBusy,
    DeviceUnavailable,
    LocationTimeout,
    PermissionDenied,
    PositionUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)


class CameraStream(Protocol):
    async def capture_frame(self) -> CapturedPhoto: ...


class CameraProvider(Protocol):
    def session(self) -> AsyncContextManager[CameraStream]: ...


class GeolocationProvider(Protocol):
    async def current_position(self) -> Coordinate: ...


class DeviceRegistry:
    """Tracks which devices are currently held."""

    def __init__(self):
        self._held: Set[str] = set()

    def is_held(self, device_id: str) -> bool:
        return device_id in self._held

    @asynccontextmanager
    async def lease(self, device_id: str):
        if device_id in self._held:
            raise DeviceBusy(f"Device {device_id} is already in use")
        self._held.add(device_id)
        try:
            yield
        finally:
            self._held.discard(device_id)


default_registry = DeviceRegistry()


def encode_jpeg(frame: np.ndarray, quality: Optional[int] = None) -> CapturedPhoto:
    """Encode a BGR frame as JPEG at its native resolution."""
    quality = settings.PHOTO_JPEG_QUALITY if quality is None else quality
    ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise ValidationError("Frame could not be encoded as JPEG")
    height, width = frame.shape[:2]
    return CapturedPhoto(data=buffer.tobytes(), width=width, height=height)


def decode_image(payload: bytes) -> np.ndarray:
    nparr = np.frombuffer(payload, np.uint8)
    img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if img is None:
        raise ValidationError("Invalid image format")
    return img


def decode_base64_image(value: str) -> np.ndarray:
    """Decode a base64 string or data URL into a BGR frame."""
    payload = value.split(",", 1)[1] if value.startswith("data:") else value
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Photo is not valid base64")
    return decode_image(raw)


class _OpenCVStream:
    def __init__(self, capture: "cv2.VideoCapture", quality: int):
        self._capture = capture
        self._quality = quality

    async def capture_frame(self) -> CapturedPhoto:
        ok, frame = await asyncio.to_thread(self._capture.read)
        if not ok or frame is None:
            raise DeviceUnavailable("Camera returned no frame")
        return encode_jpeg(frame, self._quality)


class OpenCVCamera:
    """Local camera read through ``cv2.VideoCapture`` (kiosk deployments)."""

    def __init__(self, index: Optional[int] = None, quality: Optional[int] = None,
                 registry: Optional[DeviceRegistry] = None):
        self.index = settings.CAMERA_INDEX if index is None else index
        self.quality = settings.PHOTO_JPEG_QUALITY if quality is None else quality
        self.registry = registry or default_registry
        self.device_id = f"camera:{self.index}"

    @asynccontextmanager
    async def session(self):
        async with self.registry.lease(self.device_id):
            capture = cv2.VideoCapture(self.index)
            try:
                if not capture.isOpened():
                    raise DeviceUnavailable(f"Camera {self.index} could not be opened")
                logger.info(f"📷 Camera {self.index} acquired")
                yield _OpenCVStream(capture, self.quality)
            finally:
                capture.release()
                logger.info(f"📷 Camera {self.index} released")


class _UploadedStream:
    def __init__(self, frame: np.ndarray, quality: int):
        self._frame = frame
        self._quality = quality

    async def capture_frame(self) -> CapturedPhoto:
        return encode_jpeg(self._frame, self._quality)


class UploadedFrameCamera:
    """
    Camera backed by a still frame posted by the client.

    The frame is decoded and re-encoded so every stored photo follows the
    same JPEG contract regardless of what the browser sent.
    """

    def __init__(self, photo_base64: Optional[str], device_id: str,
                 quality: Optional[int] = None, registry: Optional[DeviceRegistry] = None):
        self.photo_base64 = photo_base64
        self.device_id = device_id
        self.quality = settings.PHOTO_JPEG_QUALITY if quality is None else quality
        self.registry = registry or default_registry

    @asynccontextmanager
    async def session(self):
        async with self.registry.lease(self.device_id):
            if not self.photo_base64:
                raise DeviceUnavailable("No camera frame was submitted")
            frame = decode_base64_image(self.photo_base64)
            yield _UploadedStream(frame, self.quality)


LOCATION_ERRORS = {
    "permission_denied": PermissionDenied,
    "position_unavailable": PositionUnavailable,
    "timeout": LocationTimeout,
}


class ReportedGeolocation:
    """Position fix reported by the client device, or the error it reported."""

    def __init__(self, coordinate: Optional[Coordinate] = None, error: Optional[str] = None):
        self.coordinate = coordinate
        self.error = error

    async def current_position(self) -> Coordinate:
        if self.error:
            error_class = LOCATION_ERRORS.get(self.error, PositionUnavailable)
            raise error_class(f"Device reported location error: {self.error}")
        if self.coordinate is None:
            raise PositionUnavailable("No position was reported")
        return self.coordinate
