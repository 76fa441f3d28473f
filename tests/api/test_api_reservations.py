"""
预订管理 API 测试
"""
from datetime import date, timedelta

from fastapi.testclient import TestClient


class TestCreateReservation:
    """创建预订测试"""

    def test_create(self, client: TestClient, receptionist_auth_headers, reservation_payload):
        """测试创建预订并由服务端计算金额"""
        payload = dict(reservation_payload, total_amount="1")
        response = client.post("/reservations", headers=receptionist_auth_headers, json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["reservation_status"] == "CONFIRMED"
        assert data["number_of_nights"] == 2
        assert float(data["total_room_charge"]) == 20000
        assert float(data["total_amount"]) == 20000
        assert float(data["balance_amount"]) == 15000
        assert data["payment_status"] == "PARTIAL"
        assert data["booked_by_name"] == "前台小王"
        assert data["can_check_in"] is True
        assert len(data["payments"]) == 1
        assert data["payments"][0]["payment_type"] == "ADVANCE_PAYMENT"

    def test_create_with_extra_guest(self, client: TestClient, admin_auth_headers, reservation_payload):
        payload = dict(reservation_payload, adults=3)
        response = client.post("/reservations", headers=admin_auth_headers, json=payload)
        assert float(response.json()["extra_charges"]) == 2000
        assert float(response.json()["total_amount"]) == 22000

    def test_overlapping_booking(self, client: TestClient, admin_auth_headers,
                                 sample_reservation, reservation_payload):
        response = client.post("/reservations", headers=admin_auth_headers, json=reservation_payload)
        assert response.status_code == 400
        assert "已被预订" in response.json()["detail"]

    def test_invalid_dates(self, client: TestClient, admin_auth_headers, reservation_payload):
        payload = dict(reservation_payload, check_out_date=reservation_payload["check_in_date"])
        response = client.post("/reservations", headers=admin_auth_headers, json=payload)
        assert response.status_code == 400

    def test_unknown_customer(self, client: TestClient, admin_auth_headers, reservation_payload):
        payload = dict(reservation_payload, customer_id=999)
        response = client.post("/reservations", headers=admin_auth_headers, json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "客人不存在"

    def test_hr_cannot_create(self, client: TestClient, hr_auth_headers, reservation_payload):
        response = client.post("/reservations", headers=hr_auth_headers, json=reservation_payload)
        assert response.status_code == 403


class TestListReservations:
    """预订列表测试"""

    def test_list_with_stats(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.get("/reservations", headers=admin_auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert [r["booking_number"] for r in data["reservations"]] == [sample_reservation.booking_number]
        assert data["pagination"]["total_count"] == 1
        assert data["stats"]["total_reservations"] == 1
        assert data["stats"]["today_check_ins"] == 1

    def test_filter_by_status(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.get("/reservations?status=CANCELLED", headers=admin_auth_headers)
        assert response.json()["reservations"] == []

        response = client.get("/reservations?status=CONFIRMED", headers=admin_auth_headers)
        assert len(response.json()["reservations"]) == 1

    def test_invalid_filters(self, client: TestClient, admin_auth_headers):
        assert client.get("/reservations?status=BOGUS", headers=admin_auth_headers).status_code == 400
        response = client.get("/reservations?from_date=01/02/2025", headers=admin_auth_headers)
        assert response.status_code == 400
        assert "日期格式不正确" in response.json()["detail"]

    def test_filter_by_date_range(self, client: TestClient, admin_auth_headers, sample_reservation):
        today = date.today()
        url = f"/reservations?from_date={today + timedelta(days=1)}&to_date={today + timedelta(days=5)}"
        assert len(client.get(url, headers=admin_auth_headers).json()["reservations"]) == 1

        url = f"/reservations?from_date={today + timedelta(days=3)}"
        assert client.get(url, headers=admin_auth_headers).json()["reservations"] == []

        url = f"/reservations?to_date={today + timedelta(days=2)}"
        assert len(client.get(url, headers=admin_auth_headers).json()["reservations"]) == 1

    def test_search_by_guest(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.get("/reservations?search=Perera", headers=admin_auth_headers)
        assert len(response.json()["reservations"]) == 1
        response = client.get("/reservations?search=Nobody", headers=admin_auth_headers)
        assert response.json()["reservations"] == []

    def test_get_missing(self, client: TestClient, admin_auth_headers):
        response = client.get("/reservations/999", headers=admin_auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "预订不存在"


class TestModifyReservation:
    """修改与取消测试"""

    def test_update_recomputes_totals(self, client: TestClient, admin_auth_headers, sample_reservation):
        new_out = (date.today() + timedelta(days=3)).isoformat()
        response = client.put(f"/reservations/{sample_reservation.id}", headers=admin_auth_headers,
                              json={"check_out_date": new_out})
        assert response.status_code == 200
        assert response.json()["number_of_nights"] == 3
        assert float(response.json()["total_amount"]) == 30000

    def test_update_clears_promo_discount(self, client: TestClient, admin_auth_headers, reservation_payload):
        client.post("/promo-codes", headers=admin_auth_headers, json={
            "promocode": "SUMMER10", "room_type": "ALL", "discount": "10",
            "from_date": date.today().isoformat(),
            "to_date": (date.today() + timedelta(days=30)).isoformat(),
        })
        created = client.post("/reservations", headers=admin_auth_headers,
                              json=dict(reservation_payload, promo_code="summer10")).json()
        assert float(created["discount_amount"]) == 2000

        response = client.put(f"/reservations/{created['id']}", headers=admin_auth_headers,
                              json={"promo_code": None})
        assert response.status_code == 200
        assert response.json()["promo_code"] is None
        assert float(response.json()["discount_amount"]) == 0
        assert float(response.json()["total_amount"]) == 20000

    def test_cancel_requires_reason(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.post(f"/reservations/{sample_reservation.id}/cancel",
                               headers=admin_auth_headers, json={"reason": ""})
        assert response.status_code == 400
        assert response.json()["detail"] == "取消原因不能为空"

    def test_cancel(self, client: TestClient, receptionist_auth_headers, sample_reservation):
        """测试取消预订"""
        response = client.post(f"/reservations/{sample_reservation.id}/cancel",
                               headers=receptionist_auth_headers, json={"reason": "Flight cancelled"})
        assert response.status_code == 200
        data = response.json()
        assert data["reservation_status"] == "CANCELLED"
        assert data["cancellation_reason"] == "Flight cancelled"

        response = client.post(f"/reservations/{sample_reservation.id}/cancel",
                               headers=receptionist_auth_headers, json={"reason": "again"})
        assert response.status_code == 400

    def test_cancel_missing(self, client: TestClient, admin_auth_headers):
        response = client.post("/reservations/999/cancel", headers=admin_auth_headers,
                               json={"reason": "x"})
        assert response.status_code == 404


class TestCheckInOut:
    """入住与退房测试"""

    def test_full_stay(self, client: TestClient, receptionist_auth_headers, sample_reservation):
        """测试入住预览、入住、退房预览、退房"""
        rid = sample_reservation.id

        response = client.get(f"/reservations/{rid}/checkin", headers=receptionist_auth_headers)
        assert response.status_code == 200
        preview = response.json()
        assert preview["reservation"]["id"] == rid
        assert "is_early_check_in" in preview
        assert preview["can_check_in"] is True

        response = client.post(f"/reservations/{rid}/checkin", headers=receptionist_auth_headers,
                               json={"guest_confirmation": True, "identity_verified": True,
                                     "additional_charges": "500", "staff_notes": "Late arrival"})
        assert response.status_code == 200
        summary = response.json()
        assert float(summary["total_amount"]) == 20500
        assert float(summary["balance_amount"]) == 15500

        detail = client.get(f"/reservations/{rid}", headers=receptionist_auth_headers).json()
        assert detail["reservation_status"] == "CHECKED_IN"
        assert detail["can_check_out"] is True
        assert "Check-in Notes: Late arrival" in detail["remarks"]

        room = client.get(f"/rooms/{sample_reservation.room_id}", headers=receptionist_auth_headers).json()
        assert room["status"] == "OCCUPIED"

        response = client.get(f"/reservations/{rid}/checkout", headers=receptionist_auth_headers)
        assert response.status_code == 200
        assert "late_checkout_fee" in response.json()

        response = client.post(f"/reservations/{rid}/checkout", headers=receptionist_auth_headers,
                               json={"payment_amount": "15500"})
        assert response.status_code == 200
        summary = response.json()
        assert float(summary["final_total_amount"]) == 20500
        assert float(summary["balance_amount"]) == 0
        assert summary["payment_status"] == "PAID"

        room = client.get(f"/rooms/{sample_reservation.room_id}", headers=receptionist_auth_headers).json()
        assert room["status"] == "AVAILABLE"

    def test_check_in_without_verification(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.post(f"/reservations/{sample_reservation.id}/checkin",
                               headers=admin_auth_headers, json={"guest_confirmation": True})
        assert response.status_code == 400

    def test_check_out_before_check_in(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.post(f"/reservations/{sample_reservation.id}/checkout",
                               headers=admin_auth_headers, json={})
        assert response.status_code == 400
        assert "无法办理退房" in response.json()["detail"]

    def test_check_in_missing(self, client: TestClient, admin_auth_headers):
        assert client.get("/reservations/999/checkin", headers=admin_auth_headers).status_code == 404


class TestInvoiceAndCalendar:
    """账单、日历与导出测试"""

    def test_invoice_json(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.get(f"/reservations/{sample_reservation.id}/invoice", headers=admin_auth_headers)
        assert response.status_code == 200
        invoice = response.json()
        assert invoice["invoice_number"] == f"INV-{sample_reservation.booking_number}"
        assert float(invoice["paid_amount"]) == 5000
        assert float(invoice["balance_amount"]) == 15000
        assert len(invoice["payments"]) == 1

    def test_invoice_pdf(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.get(f"/reservations/{sample_reservation.id}/invoice?format=pdf",
                              headers=admin_auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
        assert f"INV-{sample_reservation.booking_number}.pdf" in response.headers["content-disposition"]

    def test_invoice_bad_format(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.get(f"/reservations/{sample_reservation.id}/invoice?format=xml",
                              headers=admin_auth_headers)
        assert response.status_code == 422

    def test_invoice_missing(self, client: TestClient, admin_auth_headers):
        assert client.get("/reservations/999/invoice", headers=admin_auth_headers).status_code == 404

    def test_calendar(self, client: TestClient, admin_auth_headers, sample_reservation):
        today = date.today()
        response = client.get(f"/reservations/calendar?start={today}&end={today + timedelta(days=7)}",
                              headers=admin_auth_headers)
        assert response.status_code == 200
        rooms = response.json()["rooms"]
        assert rooms[0]["room_number"] == "101"
        assert rooms[0]["reservations"][0]["customer_name"] == "Nimal Perera"

        response = client.get(f"/reservations/calendar?start={today}&end={today - timedelta(days=1)}",
                              headers=admin_auth_headers)
        assert response.status_code == 400

    def test_export_copy_and_print(self, client: TestClient, admin_auth_headers, sample_reservation):
        response = client.get("/reservations/export?format=copy", headers=admin_auth_headers)
        assert response.headers["content-type"].startswith("text/plain")
        lines = response.text.splitlines()
        assert lines[0].startswith("Booking No\tGuest")
        assert sample_reservation.booking_number in lines[1]

        response = client.get("/reservations/export?format=print", headers=admin_auth_headers)
        assert "window.print()" in response.text
