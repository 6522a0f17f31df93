from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from src.imaging import ImagePayload
from src.record import AnalysisResult, UserRecord


class ScriptedRandom:
    """Random source that replays fixed values for exact assertions."""

    def __init__(self, unit_values: list[float], integer_values: list[int]):
        self.unit_values = list(unit_values)
        self.integer_values = list(integer_values)
        self.integer_calls: list[tuple[int, int]] = []

    def random(self) -> float:
        return self.unit_values.pop(0)

    def integers(self, low: int, high: int) -> int:
        self.integer_calls.append((low, high))
        value = self.integer_values.pop(0)
        assert low <= value < high
        return value


def _image_bytes(fmt: str, size: tuple[int, int] = (64, 48)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color=(90, 140, 200)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")


@pytest.fixture
def png_payload(png_bytes) -> ImagePayload:
    return ImagePayload(mime_type="image/png", data=png_bytes)


@pytest.fixture
def analyzed_record(png_payload) -> UserRecord:
    return UserRecord(
        name="Asha Rao",
        mobile="9876543210",
        email="asha@example.com",
        latitude=19.076,
        longitude=72.8777,
        rooftop_image=png_payload,
        rooftop_area=250,
        analysis_results=AnalysisResult(
            average_rainfall=1150,
            recommended_tank_size=230,
            monthly_storage=19166,
            construction_cost=50000,
            location="Mumbai, Maharashtra",
        ),
    )


@pytest.fixture
def scripted_random():
    return ScriptedRandom
