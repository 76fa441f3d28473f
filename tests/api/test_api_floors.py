"""
楼层管理 API 测试
"""
from fastapi.testclient import TestClient


class TestFloors:
    """楼层测试"""

    def test_create_and_list(self, client: TestClient, admin_auth_headers):
        """测试创建并列出楼层"""
        response = client.post("/floors", headers=admin_auth_headers,
                               json={"floor_number": 2, "name": "  First Floor  "})
        assert response.status_code == 200
        assert response.json()["name"] == "First Floor"
        assert response.json()["room_count"] == 0

        response = client.get("/floors", headers=admin_auth_headers)
        assert response.status_code == 200
        assert [f["floor_number"] for f in response.json()] == [2]

    def test_duplicate_number(self, client: TestClient, admin_auth_headers, sample_floor):
        """测试楼层号重复"""
        response = client.post("/floors", headers=admin_auth_headers,
                               json={"floor_number": 1, "name": "Another"})
        assert response.status_code == 400
        assert "已存在" in response.json()["detail"]

    def test_get_and_update(self, client: TestClient, admin_auth_headers, sample_room):
        """测试获取与更新楼层"""
        floor_id = sample_room.floor_id
        response = client.get(f"/floors/{floor_id}", headers=admin_auth_headers)
        assert response.json()["room_count"] == 1

        response = client.put(f"/floors/{floor_id}", headers=admin_auth_headers,
                              json={"description": "Lobby level"})
        assert response.status_code == 200
        assert response.json()["description"] == "Lobby level"

    def test_get_missing(self, client: TestClient, admin_auth_headers):
        response = client.get("/floors/999", headers=admin_auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "楼层不存在"

    def test_delete_with_rooms(self, client: TestClient, admin_auth_headers, sample_room):
        """测试删除有房间的楼层"""
        response = client.delete(f"/floors/{sample_room.floor_id}", headers=admin_auth_headers)
        assert response.status_code == 400
        assert "无法删除" in response.json()["detail"]

    def test_delete_empty(self, client: TestClient, admin_auth_headers, sample_floor):
        response = client.delete(f"/floors/{sample_floor.id}", headers=admin_auth_headers)
        assert response.status_code == 200
        assert client.get(f"/floors/{sample_floor.id}", headers=admin_auth_headers).status_code == 404

    def test_export_csv(self, client: TestClient, admin_auth_headers, sample_floor):
        """测试导出 CSV"""
        response = client.get("/floors/export", headers=admin_auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == "attachment; filename=floors.csv"
        assert "Ground Floor" in response.text

    def test_receptionist_can_read(self, client: TestClient, receptionist_auth_headers, sample_floor):
        response = client.get("/floors", headers=receptionist_auth_headers)
        assert response.status_code == 200


class TestFloorPlans:
    """楼层规划测试"""

    def test_plan_room_numbers(self, client: TestClient, admin_auth_headers, sample_floor):
        """测试楼层规划展开房号"""
        response = client.post("/floors/plans", headers=admin_auth_headers, json={
            "floor_name": "Ground", "no_of_room": 3, "start_room_no": 101, "floor_id": sample_floor.id
        })
        assert response.status_code == 200
        plan = response.json()
        assert plan["room_numbers"] == [101, 102, 103]

        response = client.put(f"/floors/plans/{plan['id']}", headers=admin_auth_headers,
                              json={"no_of_room": 2})
        assert response.json()["room_numbers"] == [101, 102]

    def test_plan_unknown_floor(self, client: TestClient, admin_auth_headers):
        response = client.post("/floors/plans", headers=admin_auth_headers, json={
            "floor_name": "Ghost", "no_of_room": 1, "start_room_no": 1, "floor_id": 999
        })
        assert response.status_code == 400

    def test_plan_delete_and_export(self, client: TestClient, admin_auth_headers):
        plan = client.post("/floors/plans", headers=admin_auth_headers, json={
            "floor_name": "Roof", "no_of_room": 2, "start_room_no": 501
        }).json()

        response = client.get("/floors/plans/export?format=copy", headers=admin_auth_headers)
        assert response.headers["content-type"].startswith("text/plain")
        assert "501, 502" in response.text

        assert client.delete(f"/floors/plans/{plan['id']}", headers=admin_auth_headers).status_code == 200
        assert client.delete(f"/floors/plans/{plan['id']}", headers=admin_auth_headers).status_code == 404
