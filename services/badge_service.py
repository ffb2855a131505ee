import json
import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from schemas.employee import Employee
from services.devices import decode_base64_image
from services.stores import EmployeeStore
from utils.exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgePayload:
    """What an employee badge QR code carries: ``{"id", "name", "dept"}`` as JSON."""

    id: str
    name: str
    dept: str

    def to_json(self) -> str:
        return json.dumps({"id": self.id, "name": self.name, "dept": self.dept}, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "BadgePayload":
        try:
            data = json.loads(text)
        except (TypeError, ValueError):
            raise ValidationError("Badge payload is not JSON")
        if not isinstance(data, dict) or not isinstance(data.get("id"), str) or not data["id"]:
            raise ValidationError("Badge payload has no employee id")
        return cls(id=data["id"], name=str(data.get("name", "")), dept=str(data.get("dept", "")))

    @classmethod
    def for_employee(cls, employee: Employee) -> "BadgePayload":
        return cls(id=employee.id, name=employee.name, dept=employee.department_id)


class BadgeService:
    def __init__(self, employees: EmployeeStore, module_px: int = 10, border_modules: int = 4):
        self.employees = employees
        self.module_px = module_px
        self.border_modules = border_modules
        self.detector = cv2.QRCodeDetector()

    def render(self, payload: BadgePayload) -> bytes:
        """PNG image of the badge QR code."""
        encoder = cv2.QRCodeEncoder.create()
        matrix = encoder.encode(payload.to_json())
        if matrix is None or matrix.size == 0:
            raise ValidationError("Badge payload could not be encoded")
        size = matrix.shape[0] * self.module_px
        image = cv2.resize(matrix, (size, size), interpolation=cv2.INTER_NEAREST)
        border = self.border_modules * self.module_px
        image = cv2.copyMakeBorder(image, border, border, border, border, cv2.BORDER_CONSTANT, value=255)
        ok, buffer = cv2.imencode(".png", image)
        if not ok:
            raise ValidationError("Badge image could not be encoded")
        return buffer.tobytes()

    def decode(self, image: np.ndarray) -> BadgePayload:
        text, _points, _ = self.detector.detectAndDecode(image)
        if not text:
            raise ValidationError("No QR code found in image")
        return BadgePayload.from_json(text)

    def badge_for(self, employee_id: str) -> bytes:
        employee = self._employee(employee_id)
        return self.render(BadgePayload.for_employee(employee))

    def identify(self, image_base64: Optional[str] = None, text: Optional[str] = None) -> Employee:
        """Identify the employee from a scanned badge image or its decoded text."""
        if text is not None:
            payload = BadgePayload.from_json(text)
        elif image_base64:
            payload = self.decode(decode_base64_image(image_base64))
        else:
            raise ValidationError("Either an image or the decoded text is required")
        employee = self._employee(payload.id)
        logger.info(f"🪪 Badge scanned for {employee.id}")
        return employee

    def _employee(self, employee_id: str) -> Employee:
        employee = self.employees.get(employee_id)
        if employee is None:
            raise NotFound(f"Employee {employee_id} not found")
        return employee
