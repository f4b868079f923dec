from __future__ import annotations
from io import BytesIO
from typing import Any, Optional
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import letter
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib import colors

from vibe_survey.reporting import ResultSummary


def _safe(s: Any) -> str:
    if s is None:
        return ""
    return escape(str(s))


def result_to_pdf_bytes(summary: ResultSummary, email: Optional[str] = None) -> bytes:
    """One-page card with the vibe and the label tally."""
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=letter,
        leftMargin=0.8*inch,
        rightMargin=0.8*inch,
        topMargin=0.8*inch,
        bottomMargin=0.8*inch,
        title="Minerva Identity Survey",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "VibeTitle",
        parent=styles["Title"],
        textColor=colors.HexColor("#1d3a8a"),
        spaceAfter=12,
    )
    vibe_style = ParagraphStyle(
        "VibeName",
        parent=styles["Title"],
        fontSize=32,
        leading=38,
        textColor=colors.HexColor("#5b21b6"),
        spaceBefore=6,
        spaceAfter=18,
    )
    h_style = ParagraphStyle(
        "VibeH2",
        parent=styles["Heading2"],
        textColor=colors.HexColor("#111111"),
        spaceBefore=10,
        spaceAfter=6,
    )
    small_style = ParagraphStyle(
        "VibeSmall",
        parent=styles["BodyText"],
        fontSize=9,
        leading=11,
        textColor=colors.HexColor("#444444"),
        spaceAfter=6,
    )

    flow = []
    flow.append(Paragraph("Minerva Identity Survey", title_style))

    meta_lines = []
    if email:
        meta_lines.append(f"<b>Email:</b> {_safe(email)}")
    meta_lines.append(f"<b>Calculated at:</b> {_safe(summary.calculated_at)}")
    flow.append(Paragraph("<br/>".join(meta_lines), small_style))
    flow.append(Spacer(1, 12))

    flow.append(Paragraph("Your Minerva vibe is", styles["BodyText"]))
    flow.append(Paragraph(_safe(summary.chosen_outcome), vibe_style))
    flow.append(Paragraph(f"<b>Top group:</b> {_safe(summary.top_category)}", styles["BodyText"]))

    flow.append(Paragraph("Answer tally", h_style))
    rows = [["Group", "Answers"]]
    for label, count in sorted(summary.category_tally.items(), key=lambda x: x[1], reverse=True):
        rows.append([label, str(count)])
    table = Table(rows, colWidths=[3.0*inch, 1.2*inch])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#e0e7ff")),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#c7d2fe")),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ]))
    flow.append(table)

    doc.build(flow)
    return buf.getvalue()
