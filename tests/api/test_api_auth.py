"""
认证 API 测试
"""
from fastapi.testclient import TestClient

from hotel_admin.models.ontology import Employee, EmployeeRole
from hotel_admin.security.auth import get_password_hash


class TestLogin:
    """登录测试"""

    def test_login_success(self, client: TestClient, admin_user):
        """测试登录成功"""
        response = client.post("/auth/login", json={"username": "admin", "password": "123456"})

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["employee"]["username"] == "admin"
        assert data["employee"]["role"] == "ADMIN"

    def test_login_wrong_password(self, client: TestClient, admin_user):
        """测试密码错误"""
        response = client.post("/auth/login", json={"username": "admin", "password": "wrong"})
        assert response.status_code == 401
        assert response.json()["detail"] == "用户名或密码错误"

    def test_login_unknown_user(self, client: TestClient):
        """测试用户不存在"""
        response = client.post("/auth/login", json={"username": "nobody", "password": "123456"})
        assert response.status_code == 401

    def test_login_inactive_user(self, client: TestClient, db_session):
        """测试停用账号无法登录"""
        db_session.add(Employee(
            username="gone", password_hash=get_password_hash("123456"), name="离职员工",
            role=EmployeeRole.RECEPTIONIST, is_active=False
        ))
        db_session.commit()

        response = client.post("/auth/login", json={"username": "gone", "password": "123456"})
        assert response.status_code == 401
        assert response.json()["detail"] == "账号已停用"


class TestCurrentUser:
    """当前用户测试"""

    def test_me(self, client: TestClient, manager_auth_headers):
        """测试获取当前用户信息"""
        response = client.get("/auth/me", headers=manager_auth_headers)
        assert response.status_code == 200
        assert response.json()["username"] == "manager"

    def test_me_without_token(self, client: TestClient):
        """测试未认证访问"""
        response = client.get("/auth/me")
        assert response.status_code in (401, 403)

    def test_me_invalid_token(self, client: TestClient):
        """测试无效令牌"""
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestPermissions:
    """权限测试"""

    def test_receptionist_cannot_write_floors(self, client: TestClient, receptionist_auth_headers):
        """测试前台无楼层写权限"""
        response = client.post("/floors", headers=receptionist_auth_headers,
                               json={"floor_number": 1, "name": "Ground"})
        assert response.status_code == 403
        assert "floor:write" in response.json()["detail"]

    def test_hr_manager_cannot_read_reservations(self, client: TestClient, hr_auth_headers):
        """测试人事经理无预订权限"""
        response = client.get("/reservations", headers=hr_auth_headers)
        assert response.status_code == 403


class TestHealth:
    """基础端点测试"""

    def test_root_and_health(self, client: TestClient):
        assert client.get("/health").json() == {"status": "healthy"}
        data = client.get("/").json()
        assert "name" in data and "version" in data
