"""
repairs/exports.py
==================
Report exports for the admin dashboard: CSV (Excel-friendly, UTF-8 BOM),
XLSX via openpyxl and PDF via reportlab. Each builder takes an iterable of
RepairRequest rows and returns an HttpResponse download.
"""

import csv
import io

from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone

from .models import RepairStatus

EXPORT_COLUMNS = [
    ("job_id",        "Job ID"),
    ("id",            "ID"),
    ("full_name",     "ชื่อ"),
    ("phone",         "เบอร์โทรศัพท์"),
    ("dept_name",     "แผนก"),
    ("dept_building", "อาคาร"),
    ("dept_floor",    "ชั้น"),
    ("device",        "ชนิดอุปกรณ์"),
    ("device_id",     "หมายเลขเครื่อง (ร.พ.น.)"),
    ("issue",         "ปัญหา / อาการ"),
    ("notes",         "หมายเหตุ"),
    ("status",        "สถานะ"),
    ("receipt_no",    "เลขเครื่องที่เสร็จ"),
    ("reject_reason", "เหตุผลการปฏิเสธ"),
    ("created_at",    "วันที่สร้าง"),
    ("updated_at",    "วันที่อัปเดต"),
    ("handler",       "ผู้ดำเนินการ"),
]

EXPORT_FORMATS = ("csv", "json", "xlsx", "pdf")


def thai_short_datetime(value) -> str:
    """d/M/yy HH:MM in the Buddhist calendar, e.g. 19/10/69 14:05."""
    if not value:
        return ""
    local = timezone.localtime(value)
    return f"{local.day}/{local.month}/{(local.year + 543) % 100:02d} {local:%H:%M}"


def _export_filename(ext: str) -> str:
    return f"repair_reports_{int(timezone.now().timestamp() * 1000)}.{ext}"


def _repair_row(repair) -> list:
    return [
        repair.job_id or "",
        repair.pk or "",
        repair.full_name or "",
        repair.phone or "",
        repair.dept_name or "",
        repair.dept_building or "",
        repair.dept_floor or "",
        repair.device or "",
        repair.device_id or "",
        repair.issue or "",
        repair.notes or "",
        repair.status or RepairStatus.PENDING,
        repair.receipt_no or "",
        repair.reject_reason or "",
        thai_short_datetime(repair.created_at),
        thai_short_datetime(repair.updated_at),
        repair.handler,
    ]


def export_csv(repairs) -> HttpResponse:
    response = HttpResponse(content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{_export_filename("csv")}"'

    # BOM so Excel opens the Thai text as UTF-8
    response.write("\ufeff")
    writer = csv.writer(response)
    writer.writerow([col[1] for col in EXPORT_COLUMNS])
    for repair in repairs:
        writer.writerow(_repair_row(repair))

    return response


def export_xlsx(repairs) -> HttpResponse:
    from openpyxl import Workbook
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
    from openpyxl.utils import get_column_letter

    wb = Workbook()
    ws = wb.active
    ws.title = "Repair Requests"

    # ── Colour palette
    PURPLE = "7C3AED"
    WHITE  = "FFFFFF"
    SLATE  = "1E293B"

    last_col = get_column_letter(len(EXPORT_COLUMNS))
    ws.merge_cells(f"A1:{last_col}1")
    title_cell = ws["A1"]
    title_cell.value = "โรงพยาบาลนพรัตน์ราชธานี — รายงานแจ้งซ่อม"
    title_cell.font      = Font(bold=True, size=14, color=WHITE)
    title_cell.fill      = PatternFill("solid", fgColor=PURPLE)
    title_cell.alignment = Alignment(horizontal="center", vertical="center")
    ws.row_dimensions[1].height = 28

    header_fill   = PatternFill("solid", fgColor=SLATE)
    header_font   = Font(bold=True, size=10, color=WHITE)
    header_border = Border(bottom=Side(style="thin", color=PURPLE))

    for col_idx, (_, label) in enumerate(EXPORT_COLUMNS, start=1):
        cell = ws.cell(row=2, column=col_idx, value=label)
        cell.font      = header_font
        cell.fill      = header_fill
        cell.border    = header_border
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    ws.row_dimensions[2].height = 32

    # ── Data rows, status column tinted
    STATUS_FILLS = {
        RepairStatus.PENDING:     PatternFill("solid", fgColor="FEF3C7"),
        RepairStatus.IN_PROGRESS: PatternFill("solid", fgColor="E2E8F0"),
        RepairStatus.COMPLETED:   PatternFill("solid", fgColor="D1FAE5"),
        RepairStatus.REJECTED:    PatternFill("solid", fgColor="FEE2E2"),
    }
    status_col = [key for key, _ in EXPORT_COLUMNS].index("status") + 1

    for row_idx, repair in enumerate(repairs, start=3):
        for col_idx, value in enumerate(_repair_row(repair), start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.alignment = Alignment(vertical="top", wrap_text=True)
        fill = STATUS_FILLS.get(repair.status)
        if fill is not None:
            ws.cell(row=row_idx, column=status_col).fill = fill

    col_widths = [38, 8, 22, 14, 20, 12, 8, 16, 20, 40, 30, 14, 16, 30, 16, 16, 20]
    for i, w in enumerate(col_widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = w

    ws.freeze_panes = "A3"

    output = io.BytesIO()
    wb.save(output)

    response = HttpResponse(
        output.getvalue(),
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    response["Content-Disposition"] = f'attachment; filename="{_export_filename("xlsx")}"'
    return response


def _pdf_font() -> tuple:
    """(regular, bold) font names; a TTF with Thai glyphs when configured."""
    if not settings.PDF_FONT_PATH:
        return "Helvetica", "Helvetica-Bold"

    from reportlab.pdfbase import pdfmetrics
    from reportlab.pdfbase.ttfonts import TTFont

    if "ReportThai" not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont("ReportThai", settings.PDF_FONT_PATH))
    return "ReportThai", "ReportThai"


def export_pdf(repairs) -> HttpResponse:
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
    from reportlab.lib.units import inch
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    repairs = list(repairs)
    font, bold = _pdf_font()

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=0.5*inch, rightMargin=0.5*inch,
        topMargin=0.6*inch,  bottomMargin=0.5*inch,
    )

    PURPLE = colors.HexColor("#7C3AED")
    SLATE  = colors.HexColor("#1E293B")

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("title", parent=styles["Heading1"], fontName=bold,
                                 textColor=PURPLE, fontSize=15, spaceAfter=4)
    sub_style = ParagraphStyle("sub", parent=styles["Normal"], fontName=font,
                               textColor=SLATE, fontSize=9, spaceAfter=10)

    story = [
        Paragraph("โรงพยาบาลนพรัตน์ราชธานี — รายงานแจ้งซ่อม", title_style),
        Paragraph(
            f"{thai_short_datetime(timezone.now())}  ·  {len(repairs)} รายการ",
            sub_style,
        ),
        Spacer(1, 6),
    ]

    pdf_cols = ["Job ID", "วันที่", "ผู้แจ้ง", "แผนก", "อุปกรณ์", "อาการ", "สถานะ", "ผู้ดำเนินการ"]
    table_data = [pdf_cols]
    for repair in repairs:
        issue = repair.issue or ""
        table_data.append([
            repair.job_id[:8],
            thai_short_datetime(repair.created_at),
            repair.full_name[:24],
            (repair.dept_name or "-")[:20],
            f"{repair.device} ({repair.device_id})"[:28],
            issue[:48] + ("…" if len(issue) > 48 else ""),
            repair.status_label,
            repair.handler[:20],
        ])

    col_widths_pdf = [0.8*inch, 1.0*inch, 1.5*inch, 1.4*inch, 1.8*inch, 2.8*inch, 1.0*inch, 1.3*inch]
    tbl = Table(table_data, colWidths=col_widths_pdf, repeatRows=1)
    tbl.setStyle(TableStyle([
        ("BACKGROUND",    (0, 0), (-1, 0),  PURPLE),
        ("TEXTCOLOR",     (0, 0), (-1, 0),  colors.white),
        ("FONTNAME",      (0, 0), (-1, 0),  bold),
        ("FONTNAME",      (0, 1), (-1, -1), font),
        ("FONTSIZE",      (0, 0), (-1, -1), 8),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F1F5F9")]),
        ("GRID",          (0, 0), (-1, -1), 0.4, colors.HexColor("#CBD5E1")),
        ("VALIGN",        (0, 0), (-1, -1), "MIDDLE"),
    ]))
    story.append(tbl)

    doc.build(story)

    response = HttpResponse(buffer.getvalue(), content_type="application/pdf")
    response["Content-Disposition"] = f'attachment; filename="{_export_filename("pdf")}"'
    return response
