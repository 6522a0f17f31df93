"""Draft state for the three wizard slides.

Each draft is seeded from the current record, validates on ``submit`` and
emits at most one partial record update. Rendering lives in ``app.py``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.geolocation import GeolocationOutcome
from src.imaging import MAX_IMAGE_BYTES, ImagePayload, ImageRejected, decode_upload, encode_camera_frame
from src.record import LATITUDE_RANGE, LONGITUDE_RANGE, UserRecord
from src.validators import coordinate_errors, parse_coordinate, personal_info_errors
from src.wizard import Step


CAPTURE_SUCCESS_MESSAGE = "Photo captured successfully!"
CAPTURE_FAILED_MESSAGE = "Unable to use the captured photo. Please try again or use file upload."


@dataclass(frozen=True)
class SlideResult:
    partial: dict[str, Any] | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.partial is not None and not self.errors


def _fmt_coordinate(value: float | None) -> str:
    if value is None:
        return ""
    return f"{float(value):.6f}"


@dataclass
class PersonalInfoSlide:
    name: str = ""
    mobile: str = ""
    email: str = ""
    errors: dict[str, str] = field(default_factory=dict)
    step: Step = Step.PERSONAL_INFO

    @classmethod
    def from_record(cls, record: UserRecord) -> "PersonalInfoSlide":
        return cls(name=record.name, mobile=record.mobile, email=record.email)

    def submit(self) -> SlideResult:
        self.errors = personal_info_errors(self.name, self.mobile, self.email)
        if self.errors:
            return SlideResult(errors=dict(self.errors))
        return SlideResult(
            partial={
                "name": self.name.strip(),
                "mobile": self.mobile.strip(),
                "email": self.email.strip(),
            }
        )


@dataclass
class LocationSlide:
    latitude: str = ""
    longitude: str = ""
    status: str = "idle"  # idle | detecting | detected | error
    status_message: str = ""
    detect_attempts: int = 0
    errors: dict[str, str] = field(default_factory=dict)
    step: Step = Step.LOCATION

    @classmethod
    def from_record(cls, record: UserRecord) -> "LocationSlide":
        if record.has_coordinates:
            return cls(
                latitude=_fmt_coordinate(record.latitude),
                longitude=_fmt_coordinate(record.longitude),
                status="detected",
            )
        return cls()

    def should_auto_detect(self) -> bool:
        return self.detect_attempts == 0 and not self.latitude and not self.longitude

    def begin_detection(self) -> None:
        self.detect_attempts += 1
        self.status = "detecting"
        self.status_message = ""

    @property
    def request_key(self) -> str:
        return f"geolocation_request_{self.detect_attempts}"

    def apply_geolocation(self, outcome: GeolocationOutcome) -> None:
        if outcome.status == "pending":
            return
        if outcome.detected:
            self.latitude = _fmt_coordinate(outcome.latitude)
            self.longitude = _fmt_coordinate(outcome.longitude)
            self.status = "detected"
            self.errors = {}
        else:
            self.status = "error"
        self.status_message = outcome.message

    def preview_coordinates(self) -> tuple[float, float] | None:
        lat = parse_coordinate(self.latitude, LATITUDE_RANGE)
        lng = parse_coordinate(self.longitude, LONGITUDE_RANGE)
        if lat is None or lng is None:
            return None
        return lat, lng

    def submit(self) -> SlideResult:
        self.errors = coordinate_errors(self.latitude, self.longitude)
        if self.errors:
            return SlideResult(errors=dict(self.errors))
        lat, lng = self.preview_coordinates()
        return SlideResult(partial={"latitude": lat, "longitude": lng})


@dataclass
class RooftopImageSlide:
    image: ImagePayload | None = None
    camera_open: bool = False
    analysis_complete: bool = False
    errors: dict[str, str] = field(default_factory=dict)
    upload_nonce: int = 0
    step: Step = Step.ROOFTOP_IMAGE

    @classmethod
    def from_record(cls, record: UserRecord) -> "RooftopImageSlide":
        return cls(image=record.rooftop_image)

    @property
    def mode(self) -> str:
        if self.camera_open:
            return "camera"
        if self.image is not None:
            return "preview"
        return "choice"

    @property
    def uploader_key(self) -> str:
        return f"rooftop_upload_{self.upload_nonce}"

    def open_camera(self) -> None:
        self.camera_open = True
        self.errors = {}

    def release_camera(self) -> None:
        self.camera_open = False

    def take_photo(self, frame: bytes) -> tuple[str, str]:
        """Capture ``frame`` and return the (level, text) to show once the camera has closed."""
        try:
            self.capture(frame)
        except ImageRejected:
            return "warning", CAPTURE_FAILED_MESSAGE
        return "success", CAPTURE_SUCCESS_MESSAGE

    def capture(self, frame: bytes) -> ImagePayload:
        """Use one camera frame as the image, replacing any upload."""
        try:
            payload = encode_camera_frame(frame)
        finally:
            self.release_camera()
        self._select(payload)
        return payload

    def upload(self, mime_type: str | None, data: bytes, max_bytes: int = MAX_IMAGE_BYTES) -> ImagePayload:
        try:
            payload = decode_upload(mime_type, data, max_bytes=max_bytes)
        except ImageRejected as exc:
            self.errors = {"image": str(exc)}
            self.upload_nonce += 1
            raise
        self.release_camera()
        self._select(payload)
        return payload

    def _select(self, payload: ImagePayload) -> None:
        self.image = payload
        self.analysis_complete = False
        self.errors = {}

    def remove_image(self) -> None:
        self.image = None
        self.analysis_complete = False
        self.errors = {}
        # New uploader key drops the file the widget still holds.
        self.upload_nonce += 1
        self.release_camera()

    def mark_analyzed(self) -> None:
        if self.image is not None:
            self.analysis_complete = True

    def submit(self) -> SlideResult:
        if self.image is None:
            self.errors = {"image": "Please select an image first"}
            return SlideResult(errors=dict(self.errors))
        self.errors = {}
        return SlideResult(partial={"rooftop_image": self.image})


SLIDE_TYPES = {
    Step.PERSONAL_INFO: PersonalInfoSlide,
    Step.LOCATION: LocationSlide,
    Step.ROOFTOP_IMAGE: RooftopImageSlide,
}


def slide_for(step: Step, record: UserRecord):
    return SLIDE_TYPES[step].from_record(record)
