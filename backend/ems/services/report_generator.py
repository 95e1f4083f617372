"""PDF exports: the workforce report and the blank enrollment form."""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ems.models.employee import Employee

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["Full Name", "Email", "Department", "Role", "Join Date", "Status"]

ENROLLMENT_FIELDS = [
    "FULL NAME",
    "EMAIL ADDRESS",
    "JOB ROLE / TITLE",
    "DEPARTMENT",
    "ANNUAL SALARY",
    "JOIN DATE (YYYY-MM-DD)",
]

HEADER_COLOR = colors.Color(79 / 255, 70 / 255, 229 / 255)
FOOTER_COLOR = colors.Color(150 / 255, 150 / 255, 150 / 255)


def _report_row(employee: Employee) -> list[str]:
    return [
        employee.full_name,
        employee.email,
        employee.department,
        employee.role,
        employee.join_date.isoformat(),
        employee.status,
    ]


def render_employee_report(
    employees: Sequence[Employee],
    generated_at: datetime,
    title: str,
    organization: str,
) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=15 * mm,
        bottomMargin=18 * mm,
        title=title,
        author=organization,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("ReportTitle", parent=styles["Heading1"], fontSize=20, spaceAfter=4)
    meta_style = ParagraphStyle("ReportMeta", parent=styles["Normal"], fontSize=10, spaceAfter=8)
    cell_style = ParagraphStyle("ReportCell", parent=styles["Normal"], fontSize=8, leading=10)

    rows: list[list] = [REPORT_COLUMNS]
    rows.extend([Paragraph(escape(value), cell_style) for value in _report_row(e)] for e in employees)

    table = Table(rows, repeatRows=1, colWidths=[34 * mm, 46 * mm, 24 * mm, 32 * mm, 22 * mm, 18 * mm])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 9),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]),
            ]
        )
    )

    story = [
        Paragraph(escape(title), title_style),
        Paragraph(f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}", meta_style),
        Spacer(1, 4),
        table,
    ]

    def _footer(pdf: canvas.Canvas, document: SimpleDocTemplate) -> None:
        pdf.saveState()
        pdf.setFont("Helvetica", 8)
        pdf.setFillColor(FOOTER_COLOR)
        pdf.drawString(document.leftMargin, 10 * mm, organization)
        pdf.drawRightString(A4[0] - document.rightMargin, 10 * mm, f"Page {document.page}")
        pdf.restoreState()

    doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    logger.info("Rendered employee report with %d rows", len(employees))
    return buffer.getvalue()


def render_blank_enrollment_form(organization: str) -> bytes:
    buffer = io.BytesIO()
    width, height = A4
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle("Employee Enrollment Form")

    pdf.setFont("Helvetica-Bold", 22)
    pdf.drawCentredString(width / 2, height - 30 * mm, "EMPLOYEE ENROLLMENT FORM")

    pdf.setFont("Helvetica", 12)
    y = height - 50 * mm
    for label in ENROLLMENT_FIELDS:
        pdf.drawString(20 * mm, y, label)
        pdf.rect(20 * mm, y - 20 * mm, 170 * mm, 15 * mm, stroke=1, fill=0)
        y -= 30 * mm

    pdf.setFont("Helvetica", 10)
    pdf.setFillColor(FOOTER_COLOR)
    pdf.drawCentredString(width / 2, 17 * mm, f"Official HR Document - {organization}")

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
