"""
员工服务 - 本体操作层
管理 Employee 对象和认证
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from hotel_admin.models.ontology import Employee, EmployeeRole, Department, StaffClass
from hotel_admin.models.schemas import EmployeeCreate, EmployeeUpdate, PasswordReset
from hotel_admin.security.auth import get_password_hash, verify_password, create_access_token
from hotel_admin.services import NotFoundError
from hotel_admin.services.listing import contains_any

logger = logging.getLogger(__name__)


class EmployeeService:
    """员工服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_employees(self, department_id: Optional[int] = None,
                      role: Optional[EmployeeRole] = None,
                      is_active: Optional[bool] = None,
                      search: Optional[str] = None) -> List[Employee]:
        """获取员工列表"""
        query = self.db.query(Employee)

        if department_id:
            query = query.filter(Employee.department_id == department_id)
        if role:
            query = query.filter(Employee.role == role)
        if is_active is not None:
            query = query.filter(Employee.is_active == is_active)
        condition = contains_any(search, Employee.name, Employee.username, Employee.email, Employee.phone)
        if condition is not None:
            query = query.filter(condition)

        return query.order_by(Employee.name).all()

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        """获取单个员工"""
        return self.db.query(Employee).filter(Employee.id == employee_id).first()

    def get_employee_by_username(self, username: str) -> Optional[Employee]:
        """根据用户名获取员工"""
        return self.db.query(Employee).filter(Employee.username == username).first()

    @staticmethod
    def get_employee_detail(employee: Employee) -> dict:
        return {
            "id": employee.id,
            "username": employee.username,
            "name": employee.name,
            "email": employee.email,
            "phone": employee.phone,
            "role": employee.role,
            "department_id": employee.department_id,
            "department_name": employee.department.name if employee.department else None,
            "staff_class_id": employee.staff_class_id,
            "staff_class_name": employee.staff_class.name if employee.staff_class else None,
            "join_date": employee.join_date,
            "is_active": bool(employee.is_active),
            "created_at": employee.created_at,
        }

    def _check_refs(self, department_id: Optional[int], staff_class_id: Optional[int]):
        if department_id is not None and not self.db.query(Department).filter(
                Department.id == department_id).first():
            raise ValueError("部门不存在")
        if staff_class_id is not None and not self.db.query(StaffClass).filter(
                StaffClass.id == staff_class_id).first():
            raise ValueError("员工类别不存在")

    def _active_admin_count(self) -> int:
        return self.db.query(Employee).filter(
            Employee.role == EmployeeRole.ADMIN,
            Employee.is_active == True
        ).count()

    def create_employee(self, data: EmployeeCreate) -> Employee:
        """创建员工"""
        if self.get_employee_by_username(data.username):
            raise ValueError(f"用户名 '{data.username}' 已存在")
        self._check_refs(data.department_id, data.staff_class_id)

        values = data.model_dump(exclude={"password"})
        if values.get("join_date") is None:
            values.pop("join_date")
        employee = Employee(password_hash=get_password_hash(data.password), **values)
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        logger.info("Employee %s created with role %s", employee.username, employee.role.value)
        return employee

    def update_employee(self, employee_id: int, data: EmployeeUpdate) -> Employee:
        """更新员工"""
        employee = self.get_employee(employee_id)
        if not employee:
            raise NotFoundError("员工不存在")

        update_data = data.model_dump(exclude_unset=True)
        self._check_refs(update_data.get("department_id"), update_data.get("staff_class_id"))

        is_last_admin = (
            employee.role == EmployeeRole.ADMIN and employee.is_active
            and self._active_admin_count() <= 1
        )
        if is_last_admin:
            # 检查是否降级最后一个管理员
            if update_data.get("role") not in (None, EmployeeRole.ADMIN):
                raise ValueError("系统需至少保留一个管理员账号")
            # 检查是否停用最后一个管理员
            if update_data.get("is_active") is False:
                raise ValueError("系统需至少保留一个活跃的管理员账号")

        for key, value in update_data.items():
            if value is None and key in ("name", "role", "is_active"):
                continue
            setattr(employee, key, value)

        self.db.commit()
        self.db.refresh(employee)
        return employee

    def reset_password(self, employee_id: int, data: PasswordReset,
                       operator: Optional[Employee] = None) -> bool:
        """重置密码

        只有管理员才能重置管理员的密码。
        """
        employee = self.get_employee(employee_id)
        if not employee:
            raise NotFoundError("员工不存在")

        if employee.role == EmployeeRole.ADMIN:
            if operator is None or operator.role != EmployeeRole.ADMIN:
                raise ValueError("只有管理员才能重置管理员的密码")

        employee.password_hash = get_password_hash(data.new_password)
        self.db.commit()
        logger.info("Password reset for employee %s", employee.username)
        return True

    def deactivate_employee(self, employee_id: int) -> Employee:
        """停用员工"""
        employee = self.get_employee(employee_id)
        if not employee:
            raise NotFoundError("员工不存在")

        if employee.role == EmployeeRole.ADMIN and employee.is_active and self._active_admin_count() <= 1:
            raise ValueError("系统需至少保留一个活跃的管理员账号")

        employee.is_active = False
        self.db.commit()
        self.db.refresh(employee)
        logger.info("Employee %s deactivated", employee.username)
        return employee

    def authenticate(self, username: str, password: str) -> Optional[dict]:
        """认证登录"""
        employee = self.get_employee_by_username(username)
        if not employee:
            return None

        if not employee.is_active:
            raise ValueError("账号已停用")

        if not verify_password(password, employee.password_hash):
            return None

        token = create_access_token(employee.id, employee.role)
        logger.info("Employee %s logged in", employee.username)

        return {
            'access_token': token,
            'token_type': 'bearer',
            'employee': self.get_employee_detail(employee)
        }
