"""
促销码 API 测试
"""
from datetime import date, timedelta

from fastapi.testclient import TestClient


def _payload(**overrides):
    payload = {
        "promocode": "summer25",
        "room_type": "ALL",
        "from_date": date.today().isoformat(),
        "to_date": (date.today() + timedelta(days=30)).isoformat(),
        "discount": "25",
    }
    payload.update(overrides)
    return payload


class TestPromoCodeCrud:
    """促销码增删改查测试"""

    def test_create_uppercases_code(self, client: TestClient, manager_auth_headers):
        response = client.post("/promo-codes", headers=manager_auth_headers, json=_payload())
        assert response.status_code == 200
        data = response.json()
        assert data["promocode"] == "SUMMER25"
        assert data["status"] == "ACTIVE"

    def test_duplicate_code(self, client: TestClient, admin_auth_headers):
        client.post("/promo-codes", headers=admin_auth_headers, json=_payload())
        response = client.post("/promo-codes", headers=admin_auth_headers, json=_payload(promocode="SUMMER25"))
        assert response.status_code == 400

    def test_invalid_date_range(self, client: TestClient, admin_auth_headers):
        response = client.post("/promo-codes", headers=admin_auth_headers, json=_payload(
            from_date=(date.today() + timedelta(days=5)).isoformat(),
            to_date=date.today().isoformat(),
        ))
        assert response.status_code == 400
        assert response.json()["detail"] == "开始日期不能晚于结束日期"

    def test_unknown_room_type(self, client: TestClient, admin_auth_headers):
        response = client.post("/promo-codes", headers=admin_auth_headers, json=_payload(room_type="Penthouse"))
        assert response.status_code == 400

    def test_discount_over_100(self, client: TestClient, admin_auth_headers):
        response = client.post("/promo-codes", headers=admin_auth_headers, json=_payload(discount="120"))
        assert response.status_code == 422

    def test_list_filter_and_update(self, client: TestClient, admin_auth_headers):
        promo = client.post("/promo-codes", headers=admin_auth_headers, json=_payload()).json()

        response = client.put(f"/promo-codes/{promo['id']}", headers=admin_auth_headers,
                              json={"status": "INACTIVE"})
        assert response.json()["status"] == "INACTIVE"

        assert client.get("/promo-codes?status=ACTIVE", headers=admin_auth_headers).json() == []
        assert len(client.get("/promo-codes?status=INACTIVE", headers=admin_auth_headers).json()) == 1

    def test_receptionist_read_only(self, client: TestClient, receptionist_auth_headers):
        assert client.get("/promo-codes", headers=receptionist_auth_headers).status_code == 200
        response = client.post("/promo-codes", headers=receptionist_auth_headers, json=_payload())
        assert response.status_code == 403

    def test_delete(self, client: TestClient, admin_auth_headers):
        promo = client.post("/promo-codes", headers=admin_auth_headers, json=_payload()).json()
        assert client.delete(f"/promo-codes/{promo['id']}", headers=admin_auth_headers).status_code == 200
        assert client.get(f"/promo-codes/{promo['id']}", headers=admin_auth_headers).status_code == 404


class TestValidatePromoCode:
    """促销码校验测试"""

    def test_valid(self, client: TestClient, admin_auth_headers, sample_room_class):
        client.post("/promo-codes", headers=admin_auth_headers, json=_payload(room_type="Deluxe"))
        response = client.post("/promo-codes/validate", headers=admin_auth_headers, json={
            "promocode": "summer25", "room_class_id": sample_room_class.id,
            "stay_date": date.today().isoformat(),
        })
        assert response.status_code == 200
        assert response.json()["valid"] is True
        assert float(response.json()["discount"]) == 25

    def test_expired(self, client: TestClient, admin_auth_headers, sample_room_class):
        client.post("/promo-codes", headers=admin_auth_headers, json=_payload())
        response = client.post("/promo-codes/validate", headers=admin_auth_headers, json={
            "promocode": "SUMMER25", "room_class_id": sample_room_class.id,
            "stay_date": (date.today() + timedelta(days=60)).isoformat(),
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "促销码不在有效期内"

    def test_wrong_room_class(self, client: TestClient, admin_auth_headers, sample_room_class):
        client.post("/rooms/classes", headers=admin_auth_headers, json={
            "name": "Suite", "rate_per_night": "20000", "rate_day_use": "12000",
            "max_occupancy": 4, "standard_occupancy": 2,
        })
        client.post("/promo-codes", headers=admin_auth_headers, json=_payload(room_type="Suite"))
        response = client.post("/promo-codes/validate", headers=admin_auth_headers, json={
            "promocode": "SUMMER25", "room_class_id": sample_room_class.id,
            "stay_date": date.today().isoformat(),
        })
        assert response.status_code == 400

    def test_unknown_room_class(self, client: TestClient, admin_auth_headers):
        client.post("/promo-codes", headers=admin_auth_headers, json=_payload())
        response = client.post("/promo-codes/validate", headers=admin_auth_headers, json={
            "promocode": "SUMMER25", "room_class_id": 999, "stay_date": date.today().isoformat(),
        })
        assert response.status_code == 404
