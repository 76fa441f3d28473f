"""
导出服务测试
"""
from datetime import date, datetime
from decimal import Decimal

from hotel_admin.models.ontology import RoomStatus
from hotel_admin.services.export_service import (
    Column, ExportFormat, export_response, format_cell, invoice_to_pdf,
    to_csv, to_print_html, to_tsv
)

COLUMNS = [
    Column("room_number", "Room No"),
    Column("status", "Status"),
    Column("rate", "Rate"),
    Column(lambda r: r["room_number"][0], "Floor"),
]

ROWS = [
    {"room_number": "101", "status": RoomStatus.AVAILABLE, "rate": Decimal("10000")},
    {"room_number": "202", "status": RoomStatus.OCCUPIED, "rate": Decimal("12500.5")},
]


class TestFormatCell:
    """单元格格式化测试"""

    def test_values(self):
        assert format_cell(None) == ""
        assert format_cell(True) == "Yes"
        assert format_cell(False) == "No"
        assert format_cell(RoomStatus.CLEANING) == "CLEANING"
        assert format_cell(Decimal("3")) == "3.00"
        assert format_cell(date(2025, 3, 1)) == "2025-03-01"
        assert format_cell(datetime(2025, 3, 1, 14, 5, 33)) == "2025-03-01 14:05"

    def test_custom_formatter(self):
        column = Column("rate", "Rate", formatter=lambda v: f"LKR {v}")
        assert column.value({"rate": 5}) == "LKR 5"


class TestFormats:
    """各导出格式测试"""

    def test_csv(self):
        lines = to_csv(COLUMNS, ROWS).strip().splitlines()
        assert lines[0] == "Room No,Status,Rate,Floor"
        assert lines[1] == "101,AVAILABLE,10000.00,1"
        assert lines[2] == "202,OCCUPIED,12500.50,2"

    def test_tsv(self):
        lines = to_tsv(COLUMNS, ROWS).splitlines()
        assert lines[0] == "Room No\tStatus\tRate\tFloor"
        assert lines[1].split("\t") == ["101", "AVAILABLE", "10000.00", "1"]

    def test_print_html_escapes_and_prints(self):
        html = to_print_html("Rooms <all>", COLUMNS, ROWS)
        assert "Rooms &lt;all&gt;" in html
        assert "window.print()" in html
        assert "<td>202</td>" in html

    def test_export_response_headers(self):
        response = export_response(ExportFormat.CSV, "rooms", "Rooms", COLUMNS, ROWS)
        assert response.media_type == "text/csv"
        assert response.headers["content-disposition"] == "attachment; filename=rooms.csv"

        response = export_response(ExportFormat.PDF, "rooms", "Rooms", COLUMNS, ROWS)
        assert response.media_type == "application/pdf"
        assert response.body.startswith(b"%PDF")

        response = export_response(ExportFormat.COPY, "rooms", "Rooms", COLUMNS, ROWS)
        assert response.media_type == "text/plain"

    def test_invoice_pdf(self):
        invoice = {
            "invoice_number": "INV-BK250301001",
            "issued_at": datetime(2025, 3, 3, 12, 0),
            "booking_number": "BK250301001",
            "customer_name": "Nimal Perera",
            "customer_phone": "0771234567",
            "room_number": "101",
            "room_class_name": "Deluxe",
            "check_in_date": date(2025, 3, 1),
            "check_out_date": date(2025, 3, 3),
            "number_of_nights": 2,
            "reservation_status": "CHECKED_OUT",
            "items": [{"description": "Room 101", "quantity": 2,
                       "unit_price": Decimal("10000"), "amount": Decimal("20000")}],
            "total_amount": Decimal("20000"),
            "paid_amount": Decimal("20000"),
            "balance_amount": Decimal("0"),
            "payments": [{"date": datetime(2025, 3, 1, 9, 0), "type": "ADVANCE_PAYMENT",
                          "method": "CASH", "amount": Decimal("20000")}],
        }
        assert invoice_to_pdf(invoice).startswith(b"%PDF")
