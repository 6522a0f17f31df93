"""Help text for wizard widgets."""

from __future__ import annotations

from typing import Any

from src.imaging import format_megabytes


INPUT_GUIDANCE: dict[str, dict[str, Any]] = {
    "personal_name": {"help": "Your full name as it should appear on the report.", "example": "Asha Rao"},
    "personal_mobile": {
        "help": "Ten-digit Indian mobile number starting with 6, 7, 8 or 9.",
        "example": "9876543210",
    },
    "personal_email": {"help": "Address used to identify your assessment.", "example": "asha@example.com"},
    "location_latitude": {
        "help": "Decimal degrees between -90 and 90. Filled in automatically when detection succeeds.",
        "example": "19.0760",
    },
    "location_longitude": {
        "help": "Decimal degrees between -180 and 180. Filled in automatically when detection succeeds.",
        "example": "72.8777",
    },
}

BUTTON_HELP: dict[str, str] = {
    "start_assessment": "Begins the three-step assessment.",
    "wizard_back": "Returns to the previous step. On the first step this leaves the assessment.",
    "personal_continue": "Validates your details and moves on to location.",
    "detect_location": "Asks the browser for your current position. Press again if the permission prompt was dismissed.",
    "location_continue": "Validates the coordinates and moves on to the rooftop photo.",
    "open_camera": "Opens the device camera for a live preview.",
    "close_camera": "Closes the camera without taking a photo.",
    "remove_image": "Discards the selected photo so you can choose again.",
    "analyze_rooftop": "Runs the rooftop analysis and shows your results.",
    "generate_report": "Builds the PDF report for download.",
    "download_report": "Downloads the generated PDF report.",
    "start_over": "Clears this assessment and returns to the start page.",
    "rooftop_camera": "Take one photo of your rooftop from above.",
}


def help_with_guidance(key: str, base_help: str = "") -> str:
    g = INPUT_GUIDANCE.get(key)
    if not g:
        return BUTTON_HELP.get(key, base_help)
    text = base_help or g["help"]
    if g.get("example"):
        return f"{text} Example: {g['example']}."
    return text


def placeholder_for(key: str) -> str:
    g = INPUT_GUIDANCE.get(key) or {}
    example = g.get("example")
    return f"e.g., {example}" if example else ""


def upload_help(max_bytes: int) -> str:
    return f"PNG, JPG, WEBP, GIF or BMP up to {format_megabytes(max_bytes)}."
