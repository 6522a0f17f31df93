"""PDF export of a completed assessment."""

from __future__ import annotations

import html
import re
from copy import deepcopy
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from typing import Any, Callable

import pandas as pd

from src.imaging import to_jpeg_bytes
from src.record import UserRecord


REPORT_TITLE = "Rainwater Harvesting Assessment Report"
FOOTER_BRAND = "Rainwater Harvesting Calculator"
IMAGE_PLACEHOLDER = "Rooftop Image: [Image could not be included in PDF]"
FILENAME_PREFIX = "rainwater-harvesting-report"

DEFAULT_OPTIONS = {
    "image_height_mm": 80.0,
    "margin_mm": 20.0,
    "generated_on": None,
    "log_event": None,
}


@dataclass(frozen=True)
class ReportArtifact:
    filename: str
    pdf_bytes: bytes
    notices: tuple[str, ...] = ()

    @property
    def mime_type(self) -> str:
        return "application/pdf"


def _merge_options(options: dict | None) -> dict:
    out = deepcopy(DEFAULT_OPTIONS)
    if isinstance(options, dict):
        out.update(options)
    return out


def _log_event(
    options: dict,
    *,
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
    exc: BaseException | None = None,
) -> None:
    logger: Callable[..., Any] | None = options.get("log_event")
    if not callable(logger):
        return
    try:
        logger(level=level, event=event, message=message, context=context or {}, exc=exc)
    except Exception:
        # Export logging should never break report generation.
        return


def sanitize_filename_part(name: str) -> str:
    text = re.sub(r"\s+", "-", str(name or "").strip())
    text = re.sub(r"[^A-Za-z0-9_.-]", "", text)
    return text.strip(".") or "report"


def report_filename(name: str) -> str:
    return f"{FILENAME_PREFIX}-{sanitize_filename_part(name)}.pdf"


def _fmt_int(value: Any) -> str:
    if value is None:
        return "-"
    return f"{int(value):,}"


def _fmt_coordinate(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{float(value):.6f}"


def _generated_on(options: dict) -> str:
    value = options.get("generated_on")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if value:
        return str(value)
    return date.today().strftime("%d/%m/%Y")


def _field_table(rows: list[tuple[str, str]]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=["Field", "Value"])


def build_report_sections(record: UserRecord) -> list[dict]:
    """Build section descriptors consumed by the PDF renderers."""

    results = record.analysis_results
    location_name = results.location if results is not None else "Unknown"
    sections: list[dict[str, Any]] = [
        {
            "id": "personal",
            "title": "Personal Information",
            "table": _field_table(
                [
                    ("Name", record.name),
                    ("Mobile", record.mobile),
                    ("Email", record.email),
                ]
            ),
        },
        {
            "id": "location",
            "title": "Location Information",
            "table": _field_table(
                [
                    ("Location", location_name),
                    (
                        "Coordinates",
                        f"{_fmt_coordinate(record.latitude)}, {_fmt_coordinate(record.longitude)}",
                    ),
                ]
            ),
        },
    ]
    if record.is_analyzed:
        analysis_rows = [
            ("Rooftop Area", f"{_fmt_int(record.rooftop_area)} sq meters"),
            ("Average Annual Rainfall", f"{_fmt_int(results.average_rainfall)} mm"),
            ("Recommended Tank Size", f"{_fmt_int(results.recommended_tank_size)} liters"),
            ("Monthly Storage Potential", f"{_fmt_int(results.monthly_storage)} liters"),
            ("Estimated Construction Cost", f"INR {_fmt_int(results.construction_cost)}"),
        ]
    else:
        analysis_rows = [("Status", "Analysis not available.")]
    sections.append({"id": "analysis", "title": "Analysis Results", "table": _field_table(analysis_rows)})
    return sections


def _prepare_image(record: UserRecord, options: dict) -> tuple[dict | None, str | None]:
    """Return an embeddable image spec, or a notice when the image has to be left out."""
    if record.rooftop_image is None:
        return None, None
    try:
        jpeg_bytes, width_px, height_px = to_jpeg_bytes(record.rooftop_image)
    except Exception as exc:
        _log_event(
            options,
            level="WARNING",
            event="pdf_image_omitted",
            message="Rooftop image could not be decoded; report generated without it.",
            context={"mime_type": record.rooftop_image.mime_type, "size_bytes": record.rooftop_image.size_bytes},
            exc=exc,
        )
        return None, "Rooftop image could not be included in the PDF."
    return {"jpeg_bytes": jpeg_bytes, "width_px": width_px, "height_px": height_px}, None


def _reportlab_imports():
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.lib.units import mm
    from reportlab.platypus import Image, KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    return {
        "colors": colors,
        "A4": A4,
        "getSampleStyleSheet": getSampleStyleSheet,
        "mm": mm,
        "Image": Image,
        "KeepTogether": KeepTogether,
        "Paragraph": Paragraph,
        "SimpleDocTemplate": SimpleDocTemplate,
        "Spacer": Spacer,
        "Table": Table,
        "TableStyle": TableStyle,
    }


def _append_field_table(story: list[Any], df: pd.DataFrame, rl: dict, styles: Any, width: float) -> None:
    Paragraph = rl["Paragraph"]
    Table = rl["Table"]
    TableStyle = rl["TableStyle"]
    colors = rl["colors"]

    rows = [
        [
            Paragraph(html.escape(str(row["Field"])), styles["BodyText"]),
            Paragraph(html.escape(str(row["Value"])), styles["BodyText"]),
        ]
        for _, row in df.iterrows()
    ]
    t = Table(rows, colWidths=[0.38 * width, 0.62 * width])
    t.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LINEBELOW", (0, 0), (-1, -1), 0.3, colors.HexColor("#bcccdc")),
                ("ROWBACKGROUNDS", (0, 0), (-1, -1), [colors.white, colors.HexColor("#f0f7fb")]),
            ]
        )
    )
    story.append(t)


def _build_reportlab_pdf(record: UserRecord, sections: list[dict], image_spec: dict | None, options: dict) -> bytes:
    rl = _reportlab_imports()
    SimpleDocTemplate = rl["SimpleDocTemplate"]
    Paragraph = rl["Paragraph"]
    Spacer = rl["Spacer"]
    Image = rl["Image"]
    KeepTogether = rl["KeepTogether"]
    A4 = rl["A4"]
    mm = rl["mm"]

    styles = rl["getSampleStyleSheet"]()
    margin = float(options.get("margin_mm", 20.0)) * mm
    page_width, page_height = A4
    text_width = page_width - 2 * margin
    generated_on = _generated_on(options)

    def _draw_footer(canvas, doc) -> None:
        canvas.saveState()
        canvas.setFont("Helvetica", 10)
        y = 12 * mm
        canvas.drawString(margin, y, f"Generated on: {generated_on}")
        canvas.drawRightString(page_width - margin, y, FOOTER_BRAND)
        canvas.restoreState()

    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=margin,
        rightMargin=margin,
        topMargin=margin,
        bottomMargin=margin,
        title=REPORT_TITLE,
        author=record.name,
    )

    story: list[Any] = [Paragraph(REPORT_TITLE, styles["Title"]), Spacer(1, 6 * mm)]
    for section in sections:
        story.append(Paragraph(html.escape(str(section["title"])), styles["Heading2"]))
        _append_field_table(story, section["table"], rl, styles, text_width)
        story.append(Spacer(1, 6 * mm))

    if image_spec is not None:
        # Full text width, fixed height; the photo is stretched to the box.
        box_height = float(options.get("image_height_mm", 80.0)) * mm
        img = Image(BytesIO(image_spec["jpeg_bytes"]), width=text_width, height=box_height)
        # Heading and image move to the next page together when they do not fit.
        story.append(KeepTogether([Paragraph("Rooftop Image", styles["Heading2"]), img]))
    elif record.rooftop_image is not None:
        story.append(Paragraph(IMAGE_PLACEHOLDER, styles["BodyText"]))

    doc.build(story, onFirstPage=_draw_footer, onLaterPages=_draw_footer)
    return buf.getvalue()


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _build_minimal_pdf(lines: list[str]) -> bytes:
    """Return a small text-only PDF used when ReportLab fails."""

    max_lines = 48
    pages = [lines[i : i + max_lines] for i in range(0, len(lines), max_lines)] or [[]]
    width, height, line_height = 595, 842, 14

    font_id = 3
    objects: dict[int, str] = {font_id: "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>"}
    page_ids: list[int] = []
    next_id = 4
    for page_lines in pages:
        page_id, content_id = next_id, next_id + 1
        next_id += 2
        cmds = ["BT", "/F1 10 Tf", f"50 {height - 50} Td", f"{line_height} TL"]
        cmds.extend(f"({_pdf_escape(line[:200])}) Tj T*" for line in page_lines)
        cmds.append("ET")
        stream = "\n".join(cmds).encode("latin-1", errors="replace").decode("latin-1")
        objects[content_id] = f"<< /Length {len(stream)} >>\nstream\n{stream}\nendstream"
        objects[page_id] = (
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {width} {height}] "
            f"/Resources << /Font << /F1 {font_id} 0 R >> >> /Contents {content_id} 0 R >>"
        )
        page_ids.append(page_id)
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)
    objects[2] = f"<< /Type /Pages /Count {len(page_ids)} /Kids [{kids}] >>"
    objects[1] = "<< /Type /Catalog /Pages 2 0 R >>"

    out = BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets: dict[int, int] = {}
    for obj_id in range(1, next_id):
        offsets[obj_id] = out.tell()
        out.write(f"{obj_id} 0 obj\n".encode("ascii"))
        out.write(objects[obj_id].encode("latin-1", errors="replace"))
        out.write(b"\nendobj\n")
    xref_start = out.tell()
    out.write(f"xref\n0 {next_id}\n".encode("ascii"))
    out.write(b"0000000000 65535 f \n")
    for obj_id in range(1, next_id):
        out.write(f"{offsets[obj_id]:010d} 00000 n \n".encode("ascii"))
    out.write(f"trailer\n<< /Size {next_id} /Root 1 0 R >>\nstartxref\n{xref_start}\n%%EOF\n".encode("ascii"))
    return out.getvalue()


def _build_fallback_text_pdf(record: UserRecord, sections: list[dict], options: dict) -> bytes:
    lines = [REPORT_TITLE, ""]
    for section in sections:
        lines.append(str(section["title"]))
        for _, row in section["table"].iterrows():
            lines.append(f"  {row['Field']}: {row['Value']}")
        lines.append("")
    if record.rooftop_image is not None:
        lines.append(IMAGE_PLACEHOLDER)
        lines.append("")
    lines.append(f"Generated on: {_generated_on(options)}    {FOOTER_BRAND}")
    return _build_minimal_pdf(lines)


def build_report(record: UserRecord, options: dict | None = None) -> ReportArtifact:
    """Render the assessment PDF; a broken image or renderer degrades the output instead of failing."""

    merged = _merge_options(options)
    sections = build_report_sections(record)
    notices: list[str] = []
    image_spec, image_notice = _prepare_image(record, merged)
    if image_notice:
        notices.append(image_notice)
    try:
        pdf_bytes = _build_reportlab_pdf(record, sections, image_spec, merged)
        if not pdf_bytes.startswith(b"%PDF"):
            raise RuntimeError("ReportLab returned unexpected output.")
    except Exception as exc:
        _log_event(
            merged,
            level="WARNING",
            event="pdf_export_reportlab_fallback",
            message="ReportLab failed; using minimal PDF fallback.",
            exc=exc,
        )
        notices.append("Report was generated in plain-text layout.")
        pdf_bytes = _build_fallback_text_pdf(record, sections, merged)
    return ReportArtifact(filename=report_filename(record.name), pdf_bytes=pdf_bytes, notices=tuple(notices))
