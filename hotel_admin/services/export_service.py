"""
导出服务
把列表的当前行导出为 CSV、PDF、打印页或剪贴板文本
"""
import csv
import html
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Sequence
from fastapi import Response
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

logger = logging.getLogger(__name__)


class ExportFormat(str, Enum):
    """导出格式"""
    CSV = "csv"
    PDF = "pdf"
    PRINT = "print"
    COPY = "copy"


@dataclass
class Column:
    """导出列：key 可以是属性名或取值函数"""
    key: Any
    label: str
    formatter: Optional[Callable[[Any], str]] = None

    def value(self, row) -> str:
        if callable(self.key):
            raw = self.key(row)
        elif isinstance(row, dict):
            raw = row.get(self.key)
        else:
            raw = getattr(row, self.key, None)
        if self.formatter is not None:
            return self.formatter(raw)
        return format_cell(raw)


def format_cell(value) -> str:
    """单元格格式化"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (Decimal, float)):
        return f"{value:.2f}"
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="minutes")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _table(columns: Sequence[Column], rows: Iterable) -> List[List[str]]:
    return [[c.value(r) for c in columns] for r in rows]


def to_csv(columns: Sequence[Column], rows: Iterable) -> str:
    """CSV：表头 + 数据行"""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([c.label for c in columns])
    writer.writerows(_table(columns, rows))
    return output.getvalue()


def to_tsv(columns: Sequence[Column], rows: Iterable) -> str:
    """剪贴板文本（制表符分隔）"""
    lines = ["\t".join(c.label for c in columns)]
    for values in _table(columns, rows):
        lines.append("\t".join(v.replace("\t", " ").replace("\n", " ") for v in values))
    return "\n".join(lines)


def to_print_html(title: str, columns: Sequence[Column], rows: Iterable) -> str:
    """可打印的 HTML 页面，加载后自动调用 window.print()"""
    head = "".join(f"<th>{html.escape(c.label)}</th>" for c in columns)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(v)}</td>" for v in values) + "</tr>"
        for values in _table(columns, rows)
    )
    safe_title = html.escape(title)
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{safe_title}</title>"
        "<style>body{font-family:sans-serif;font-size:12px}"
        "table{border-collapse:collapse;width:100%}"
        "th,td{border:1px solid #999;padding:4px 6px;text-align:left}"
        "th{background:#f0f0f0}</style></head>"
        f"<body><h2>{safe_title}</h2>"
        f"<p>Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}</p>"
        f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"
        "<script>window.onload=function(){window.print();}</script>"
        "</body></html>"
    )


def to_pdf(title: str, columns: Sequence[Column], rows: Iterable) -> bytes:
    """横向 A4 PDF 表格"""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4), topMargin=12 * mm, bottomMargin=12 * mm,
                            leftMargin=10 * mm, rightMargin=10 * mm, title=title)
    styles = getSampleStyleSheet()

    elements = [
        Paragraph(html.escape(title), styles['Heading2']),
        Paragraph(f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}", styles['Normal']),
        Spacer(1, 4 * mm),
    ]

    table_data = [[c.label for c in columns]] + _table(columns, rows)
    table = Table(table_data, repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f0f0f0')),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('LEFTPADDING', (0, 0), (-1, -1), 3),
        ('RIGHTPADDING', (0, 0), (-1, -1), 3),
    ]))
    elements.append(table)

    doc.build(elements)
    return buffer.getvalue()


def export_response(fmt: ExportFormat, filename: str, title: str,
                    columns: Sequence[Column], rows: Iterable) -> Response:
    """按格式生成下载/打印响应"""
    rows = list(rows)
    logger.info("Exporting %d rows of %s as %s", len(rows), filename, fmt.value)

    if fmt == ExportFormat.CSV:
        return Response(
            content=to_csv(columns, rows),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}.csv"},
        )
    if fmt == ExportFormat.PDF:
        return Response(
            content=to_pdf(title, columns, rows),
            media_type="application/pdf",
            headers={"Content-Disposition": f"attachment; filename={filename}.pdf"},
        )
    if fmt == ExportFormat.PRINT:
        return Response(content=to_print_html(title, columns, rows), media_type="text/html")
    return Response(content=to_tsv(columns, rows), media_type="text/plain")


def invoice_to_pdf(invoice: dict) -> bytes:
    """单张账单 PDF：客人与入住信息、明细行、合计与付款记录"""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=15 * mm, bottomMargin=15 * mm,
                            title=invoice["invoice_number"])
    styles = getSampleStyleSheet()

    elements = [
        Paragraph(f"Invoice {html.escape(invoice['invoice_number'])}", styles['Title']),
        Paragraph(f"Issued {format_cell(invoice['issued_at'])}", styles['Normal']),
        Spacer(1, 6 * mm),
    ]

    info = [
        ["Booking No", invoice["booking_number"], "Guest", invoice["customer_name"]],
        ["Room", f"{invoice['room_number']} ({invoice['room_class_name']})",
         "Phone", format_cell(invoice.get("customer_phone"))],
        ["Check-in", format_cell(invoice["check_in_date"]),
         "Check-out", format_cell(invoice["check_out_date"])],
        ["Nights", str(invoice["number_of_nights"]),
         "Status", format_cell(invoice["reservation_status"])],
    ]
    info_table = Table(info, colWidths=[28 * mm, 60 * mm, 28 * mm, 60 * mm])
    info_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
    ]))
    elements.extend([info_table, Spacer(1, 6 * mm)])

    rows = [["Description", "Qty", "Unit Price", "Amount"]]
    for item in invoice["items"]:
        rows.append([item["description"], str(item["quantity"]),
                     format_cell(item["unit_price"]), format_cell(item["amount"])])
    rows.append(["", "", "Total", format_cell(invoice["total_amount"])])
    rows.append(["", "", "Paid", format_cell(invoice["paid_amount"])])
    rows.append(["", "", "Balance", format_cell(invoice["balance_amount"])])
    n_items = len(invoice["items"])

    items_table = Table(rows, colWidths=[90 * mm, 15 * mm, 35 * mm, 35 * mm], repeatRows=1)
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f0f0f0')),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, n_items), 0.5, colors.grey),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (2, n_items + 1), (-1, -1), 'Helvetica-Bold'),
    ]))
    elements.append(items_table)

    if invoice["payments"]:
        elements.extend([Spacer(1, 6 * mm), Paragraph("Payments", styles['Heading3'])])
        payment_rows = [["Date", "Type", "Method", "Amount"]] + [
            [format_cell(p["date"]), format_cell(p["type"]), format_cell(p["method"]),
             format_cell(p["amount"])]
            for p in invoice["payments"]
        ]
        payment_table = Table(payment_rows, colWidths=[45 * mm, 50 * mm, 40 * mm, 35 * mm])
        payment_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f0f0f0')),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('ALIGN', (3, 0), (3, -1), 'RIGHT'),
        ]))
        elements.append(payment_table)

    doc.build(elements)
    return buffer.getvalue()
