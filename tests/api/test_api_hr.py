"""
人事管理 API 测试
"""
from datetime import date, timedelta

from fastapi.testclient import TestClient


class TestDepartmentsAndStaffClasses:
    """部门与员工类别测试"""

    def test_department_crud(self, client: TestClient, hr_auth_headers):
        response = client.post("/hr/departments", headers=hr_auth_headers, json={"name": "Housekeeping"})
        assert response.status_code == 200
        department = response.json()
        assert department["staff_count"] == 0

        response = client.post("/hr/departments", headers=hr_auth_headers, json={"name": "Housekeeping"})
        assert response.status_code == 400

        response = client.put(f"/hr/departments/{department['id']}", headers=hr_auth_headers,
                              json={"description": "Rooms and laundry"})
        assert response.json()["description"] == "Rooms and laundry"

        assert client.delete(f"/hr/departments/{department['id']}", headers=hr_auth_headers).status_code == 200
        assert client.get("/hr/departments", headers=hr_auth_headers).json() == []

    def test_staff_class_default_leaves(self, client: TestClient, hr_auth_headers):
        response = client.post("/hr/staff-classes", headers=hr_auth_headers, json={"name": "Permanent"})
        assert response.status_code == 200
        assert response.json()["max_leaves_per_year"] == 14

    def test_manager_read_only(self, client: TestClient, manager_auth_headers):
        assert client.get("/hr/departments", headers=manager_auth_headers).status_code == 200
        response = client.post("/hr/departments", headers=manager_auth_headers, json={"name": "Spa"})
        assert response.status_code == 403


class TestEmployees:
    """员工测试"""

    def test_create_and_login(self, client: TestClient, hr_auth_headers):
        """测试创建员工后可以登录"""
        department = client.post("/hr/departments", headers=hr_auth_headers,
                                 json={"name": "Front Office"}).json()
        response = client.post("/hr/employees", headers=hr_auth_headers, json={
            "username": "front2", "password": "secret1", "name": "Kasun",
            "role": "RECEPTIONIST", "department_id": department["id"],
        })
        assert response.status_code == 200
        assert response.json()["department_name"] == "Front Office"
        assert response.json()["join_date"] is not None

        response = client.post("/auth/login", json={"username": "front2", "password": "secret1"})
        assert response.status_code == 200

    def test_duplicate_username(self, client: TestClient, admin_auth_headers):
        response = client.post("/hr/employees", headers=admin_auth_headers, json={
            "username": "admin", "password": "secret1", "name": "Copy", "role": "ADMIN",
        })
        assert response.status_code == 400

    def test_short_password(self, client: TestClient, admin_auth_headers):
        response = client.post("/hr/employees", headers=admin_auth_headers, json={
            "username": "x", "password": "123", "name": "X", "role": "RECEPTIONIST",
        })
        assert response.status_code == 422

    def test_last_admin_cannot_be_demoted(self, client: TestClient, admin_auth_headers, admin_user):
        """测试不能降级最后一个管理员"""
        response = client.put(f"/hr/employees/{admin_user.id}", headers=admin_auth_headers,
                              json={"role": "MANAGER"})
        assert response.status_code == 400
        assert response.json()["detail"] == "系统需至少保留一个管理员账号"

        response = client.post(f"/hr/employees/{admin_user.id}/deactivate", headers=admin_auth_headers)
        assert response.status_code == 400

    def test_password_reset(self, client: TestClient, admin_auth_headers, hr_auth_headers, admin_user):
        """测试重置密码：人事经理不能重置管理员密码"""
        response = client.put(f"/hr/employees/{admin_user.id}/password", headers=hr_auth_headers,
                              json={"new_password": "hacked1"})
        assert response.status_code == 403

        hr = client.get("/hr/employees?search=hr1", headers=hr_auth_headers).json()[0]
        response = client.put(f"/hr/employees/{hr['id']}/password", headers=admin_auth_headers,
                              json={"new_password": "newpass1"})
        assert response.status_code == 200
        assert response.json() == {"message": "密码已重置"}

        response = client.post("/auth/login", json={"username": "hr1", "password": "newpass1"})
        assert response.status_code == 200

    def test_deactivate(self, client: TestClient, hr_auth_headers, receptionist_token):
        front = client.get("/hr/employees?role=RECEPTIONIST", headers=hr_auth_headers).json()[0]
        response = client.post(f"/hr/employees/{front['id']}/deactivate", headers=hr_auth_headers)
        assert response.json()["is_active"] is False

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {receptionist_token}"})
        assert response.status_code == 401

    def test_export(self, client: TestClient, hr_auth_headers):
        response = client.get("/hr/employees/export?format=copy", headers=hr_auth_headers)
        assert response.headers["content-type"].startswith("text/plain")
        assert "hr1" in response.text

    def test_receptionist_forbidden(self, client: TestClient, receptionist_auth_headers):
        assert client.get("/hr/employees", headers=receptionist_auth_headers).status_code == 403
        assert client.get("/hr/dashboard", headers=receptionist_auth_headers).status_code == 403


class TestAttendanceAndLeaves:
    """考勤与请假测试"""

    def _employee_id(self, client, headers):
        return client.get("/hr/employees?search=hr1", headers=headers).json()[0]["id"]

    def test_attendance_upsert(self, client: TestClient, hr_auth_headers):
        employee_id = self._employee_id(client, hr_auth_headers)
        today = date.today().isoformat()

        client.post("/hr/attendance", headers=hr_auth_headers,
                    json={"employee_id": employee_id, "date": today, "status": "PRESENT"})
        response = client.post("/hr/attendance", headers=hr_auth_headers,
                               json={"employee_id": employee_id, "date": today, "status": "LATE"})
        assert response.status_code == 200
        assert response.json()["employee_name"] == "人事经理"

        records = client.get(f"/hr/attendance?on_date={today}", headers=hr_auth_headers).json()
        assert [r["status"] for r in records] == ["LATE"]

    def test_attendance_unknown_employee(self, client: TestClient, hr_auth_headers):
        response = client.post("/hr/attendance", headers=hr_auth_headers, json={
            "employee_id": 999, "date": date.today().isoformat(), "status": "PRESENT"
        })
        assert response.status_code == 400

    def test_leave_approve_and_reject(self, client: TestClient, hr_auth_headers):
        """测试请假审批"""
        employee_id = self._employee_id(client, hr_auth_headers)
        start = date.today() + timedelta(days=7)

        first = client.post("/hr/leaves", headers=hr_auth_headers, json={
            "employee_id": employee_id, "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=2)).isoformat(), "reason": "Family",
        }).json()
        assert first["total_days"] == 3
        assert first["status"] == "PENDING"

        second = client.post("/hr/leaves", headers=hr_auth_headers, json={
            "employee_id": employee_id, "start_date": start.isoformat(), "end_date": start.isoformat(),
        }).json()

        response = client.post(f"/hr/leaves/{first['id']}/approve", headers=hr_auth_headers)
        assert response.json()["status"] == "APPROVED"
        assert response.json()["decided_at"] is not None

        response = client.post(f"/hr/leaves/{second['id']}/reject", headers=hr_auth_headers)
        assert response.json()["status"] == "REJECTED"

        response = client.post(f"/hr/leaves/{first['id']}/reject", headers=hr_auth_headers)
        assert response.status_code == 400

        approved = client.get("/hr/leaves?status=APPROVED", headers=hr_auth_headers).json()
        assert [leave["id"] for leave in approved] == [first["id"]]

    def test_leave_invalid_range(self, client: TestClient, hr_auth_headers):
        employee_id = self._employee_id(client, hr_auth_headers)
        response = client.post("/hr/leaves", headers=hr_auth_headers, json={
            "employee_id": employee_id,
            "start_date": date.today().isoformat(),
            "end_date": (date.today() - timedelta(days=1)).isoformat(),
        })
        assert response.status_code == 400

    def test_decide_missing_leave(self, client: TestClient, hr_auth_headers):
        assert client.post("/hr/leaves/999/approve", headers=hr_auth_headers).status_code == 404


class TestDashboard:
    """人事看板测试"""

    def test_dashboard(self, client: TestClient, hr_auth_headers, receptionist_token):
        client.post("/hr/departments", headers=hr_auth_headers, json={"name": "Front Office"})
        response = client.get("/hr/dashboard", headers=hr_auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["stats"]["staff"]["total"] == 2
        assert data["stats"]["staff"]["active"] == 2
        assert data["stats"]["departments"]["total"] == 1
        assert data["stats"]["leaves"]["pending"] == 0
        assert "leave_balance" in data
        assert "alerts" in data
