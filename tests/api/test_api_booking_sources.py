"""
预订渠道 API 测试
"""
from fastapi.testclient import TestClient


class TestBookingTypes:
    """预订类型测试"""

    def test_create_and_list(self, client: TestClient, manager_auth_headers):
        response = client.post("/booking-sources/types", headers=manager_auth_headers, json={"name": "Corporate"})
        assert response.status_code == 200
        assert response.json()["source_count"] == 0

        response = client.get("/booking-sources/types", headers=manager_auth_headers)
        assert [t["name"] for t in response.json()] == ["Corporate"]

    def test_duplicate(self, client: TestClient, admin_auth_headers, sample_booking_source):
        response = client.post("/booking-sources/types", headers=admin_auth_headers, json={"name": "OTA"})
        assert response.status_code == 400
        assert "已存在" in response.json()["detail"]

    def test_delete_with_sources(self, client: TestClient, admin_auth_headers, sample_booking_source):
        """测试删除仍有渠道的类型"""
        response = client.delete(f"/booking-sources/types/{sample_booking_source.booking_type_id}",
                                 headers=admin_auth_headers)
        assert response.status_code == 400
        assert "无法删除" in response.json()["detail"]

    def test_rename(self, client: TestClient, admin_auth_headers, sample_booking_source):
        response = client.put(f"/booking-sources/types/{sample_booking_source.booking_type_id}",
                              headers=admin_auth_headers, json={"name": "Online"})
        assert response.json()["name"] == "Online"
        assert response.json()["source_count"] == 1

    def test_receptionist_cannot_write(self, client: TestClient, receptionist_auth_headers):
        response = client.post("/booking-sources/types", headers=receptionist_auth_headers,
                               json={"name": "Walk-in"})
        assert response.status_code == 403


class TestBookingSources:
    """预订渠道测试"""

    def test_due_amount_computed(self, client: TestClient, admin_auth_headers, sample_booking_source):
        """测试未给出应付金额时自动计算"""
        response = client.post("/booking-sources", headers=admin_auth_headers, json={
            "booking_type_id": sample_booking_source.booking_type_id,
            "booking_source": "  Expedia ",
            "commission_rate": "18",
            "total_balance": "5000",
            "paid_amount": "1500",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["booking_source"] == "Expedia"
        assert data["booking_type_name"] == "OTA"
        assert float(data["due_amount"]) == 3500

    def test_update_recomputes_due(self, client: TestClient, admin_auth_headers, sample_booking_source):
        response = client.put(f"/booking-sources/{sample_booking_source.id}", headers=admin_auth_headers,
                              json={"paid_amount": "1000"})
        assert response.status_code == 200
        assert float(response.json()["due_amount"]) == 0

    def test_unknown_type(self, client: TestClient, admin_auth_headers):
        response = client.post("/booking-sources", headers=admin_auth_headers, json={
            "booking_type_id": 999, "booking_source": "Ghost",
            "commission_rate": "0", "total_balance": "0", "paid_amount": "0",
        })
        assert response.status_code == 400

    def test_commission_out_of_range(self, client: TestClient, admin_auth_headers, sample_booking_source):
        response = client.post("/booking-sources", headers=admin_auth_headers, json={
            "booking_type_id": sample_booking_source.booking_type_id, "booking_source": "Greedy",
            "commission_rate": "150", "total_balance": "0", "paid_amount": "0",
        })
        assert response.status_code == 422

    def test_list_search_and_export(self, client: TestClient, receptionist_auth_headers, sample_booking_source):
        response = client.get("/booking-sources?search=booking", headers=receptionist_auth_headers)
        assert [s["booking_source"] for s in response.json()] == ["Booking.com"]

        response = client.get("/booking-sources/export", headers=receptionist_auth_headers)
        assert response.headers["content-disposition"] == "attachment; filename=booking_sources.csv"
        assert "Booking.com" in response.text

    def test_delete_referenced_source(self, client: TestClient, admin_auth_headers,
                                      sample_booking_source, reservation_payload):
        payload = dict(reservation_payload, booking_source_id=sample_booking_source.id)
        assert client.post("/reservations", headers=admin_auth_headers, json=payload).status_code == 200

        response = client.delete(f"/booking-sources/{sample_booking_source.id}", headers=admin_auth_headers)
        assert response.status_code == 400

    def test_delete(self, client: TestClient, admin_auth_headers, sample_booking_source):
        response = client.delete(f"/booking-sources/{sample_booking_source.id}", headers=admin_auth_headers)
        assert response.status_code == 200
        assert client.get(f"/booking-sources/{sample_booking_source.id}",
                          headers=admin_auth_headers).status_code == 404
