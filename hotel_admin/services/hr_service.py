"""
人事服务
部门、员工类别、考勤、请假与人事看板
"""
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from hotel_admin.models.ontology import (
    Department, StaffClass, Employee, Attendance, AttendanceStatus, Leave, LeaveStatus
)
from hotel_admin.models.schemas import (
    DepartmentCreate, DepartmentUpdate, StaffClassCreate, StaffClassUpdate,
    AttendanceRecord, LeaveApply
)
from hotel_admin.services import NotFoundError

logger = logging.getLogger(__name__)

OVERDUE_LEAVE_DAYS = 7
LEAVE_BALANCE_LIMIT = 10


class HRService:
    """人事服务"""

    def __init__(self, db: Session):
        self.db = db

    # ============== 部门 ==============

    def get_departments(self, is_active: Optional[bool] = None) -> List[Department]:
        query = self.db.query(Department)
        if is_active is not None:
            query = query.filter(Department.is_active == is_active)
        return query.order_by(Department.name).all()

    def get_department(self, department_id: int) -> Optional[Department]:
        return self.db.query(Department).filter(Department.id == department_id).first()

    @staticmethod
    def get_department_detail(department: Department) -> dict:
        return {
            "id": department.id,
            "name": department.name,
            "description": department.description,
            "is_active": bool(department.is_active),
            "staff_count": len(department.staff),
            "created_at": department.created_at,
        }

    def _check_department_name(self, name: str, exclude_id: Optional[int] = None):
        query = self.db.query(Department).filter(Department.name == name)
        if exclude_id:
            query = query.filter(Department.id != exclude_id)
        if query.first():
            raise ValueError(f"部门 {name} 已存在")

    def create_department(self, data: DepartmentCreate) -> Department:
        self._check_department_name(data.name)
        department = Department(**data.model_dump())
        self.db.add(department)
        self.db.commit()
        self.db.refresh(department)
        return department

    def update_department(self, department_id: int, data: DepartmentUpdate) -> Department:
        department = self.get_department(department_id)
        if not department:
            raise NotFoundError("部门不存在")
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("name"):
            self._check_department_name(update_data["name"], exclude_id=department_id)
        for key, value in update_data.items():
            if value is not None or key == "description":
                setattr(department, key, value)
        self.db.commit()
        self.db.refresh(department)
        return department

    def delete_department(self, department_id: int) -> None:
        """删除部门（有员工时拒绝）"""
        department = self.get_department(department_id)
        if not department:
            raise NotFoundError("部门不存在")
        if department.staff:
            raise ValueError(f"部门下还有 {len(department.staff)} 名员工，无法删除")
        self.db.delete(department)
        self.db.commit()

    # ============== 员工类别 ==============

    def get_staff_classes(self) -> List[StaffClass]:
        return self.db.query(StaffClass).order_by(StaffClass.name).all()

    def get_staff_class(self, staff_class_id: int) -> Optional[StaffClass]:
        return self.db.query(StaffClass).filter(StaffClass.id == staff_class_id).first()

    @staticmethod
    def get_staff_class_detail(staff_class: StaffClass) -> dict:
        return {
            "id": staff_class.id,
            "name": staff_class.name,
            "description": staff_class.description,
            "max_leaves_per_year": staff_class.max_leaves_per_year,
            "is_active": bool(staff_class.is_active),
            "staff_count": len(staff_class.staff),
            "created_at": staff_class.created_at,
        }

    def _check_staff_class_name(self, name: str, exclude_id: Optional[int] = None):
        query = self.db.query(StaffClass).filter(StaffClass.name == name)
        if exclude_id:
            query = query.filter(StaffClass.id != exclude_id)
        if query.first():
            raise ValueError(f"员工类别 {name} 已存在")

    def create_staff_class(self, data: StaffClassCreate) -> StaffClass:
        self._check_staff_class_name(data.name)
        staff_class = StaffClass(**data.model_dump())
        self.db.add(staff_class)
        self.db.commit()
        self.db.refresh(staff_class)
        return staff_class

    def update_staff_class(self, staff_class_id: int, data: StaffClassUpdate) -> StaffClass:
        staff_class = self.get_staff_class(staff_class_id)
        if not staff_class:
            raise NotFoundError("员工类别不存在")
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("name"):
            self._check_staff_class_name(update_data["name"], exclude_id=staff_class_id)
        for key, value in update_data.items():
            if value is not None or key == "description":
                setattr(staff_class, key, value)
        self.db.commit()
        self.db.refresh(staff_class)
        return staff_class

    def delete_staff_class(self, staff_class_id: int) -> None:
        """删除员工类别（有员工使用时拒绝）"""
        staff_class = self.get_staff_class(staff_class_id)
        if not staff_class:
            raise NotFoundError("员工类别不存在")
        if staff_class.staff:
            raise ValueError(f"该类别下还有 {len(staff_class.staff)} 名员工，无法删除")
        self.db.delete(staff_class)
        self.db.commit()

    # ============== 考勤 ==============

    def _require_employee(self, employee_id: int) -> Employee:
        employee = self.db.query(Employee).filter(Employee.id == employee_id).first()
        if not employee:
            raise ValueError("员工不存在")
        return employee

    def record_attendance(self, data: AttendanceRecord) -> Attendance:
        """记录考勤；同一员工同一天重复记录时更新原记录"""
        self._require_employee(data.employee_id)

        record = self.db.query(Attendance).filter(
            Attendance.employee_id == data.employee_id,
            Attendance.date == data.date
        ).first()
        if record:
            record.status = data.status
            record.notes = data.notes
        else:
            record = Attendance(**data.model_dump())
            self.db.add(record)

        self.db.commit()
        self.db.refresh(record)
        return record

    def get_attendance(self, on_date: Optional[date] = None,
                       employee_id: Optional[int] = None) -> List[Attendance]:
        query = self.db.query(Attendance)
        if on_date:
            query = query.filter(Attendance.date == on_date)
        if employee_id:
            query = query.filter(Attendance.employee_id == employee_id)
        return query.order_by(Attendance.date.desc(), Attendance.id.desc()).all()

    @staticmethod
    def get_attendance_detail(record: Attendance) -> dict:
        return {
            "id": record.id,
            "employee_id": record.employee_id,
            "employee_name": record.employee.name if record.employee else None,
            "date": record.date,
            "status": record.status,
            "notes": record.notes,
            "created_at": record.created_at,
        }

    # ============== 请假 ==============

    def apply_leave(self, data: LeaveApply) -> Leave:
        """申请请假（天数含首尾）"""
        if data.start_date > data.end_date:
            raise ValueError("开始日期不能晚于结束日期")
        self._require_employee(data.employee_id)

        leave = Leave(
            employee_id=data.employee_id,
            start_date=data.start_date,
            end_date=data.end_date,
            total_days=(data.end_date - data.start_date).days + 1,
            reason=data.reason,
            status=LeaveStatus.PENDING,
        )
        self.db.add(leave)
        self.db.commit()
        self.db.refresh(leave)
        return leave

    def _decide_leave(self, leave_id: int, status: LeaveStatus, decided_by: Optional[int]) -> Leave:
        leave = self.db.query(Leave).filter(Leave.id == leave_id).first()
        if not leave:
            raise NotFoundError("请假记录不存在")
        if leave.status != LeaveStatus.PENDING:
            raise ValueError(f"请假申请已处理 ({leave.status.value})")

        leave.status = status
        leave.decided_at = datetime.utcnow()
        leave.decided_by = decided_by
        self.db.commit()
        self.db.refresh(leave)
        logger.info("Leave %s for employee %s %s", leave.id, leave.employee_id, status.value.lower())
        return leave

    def approve_leave(self, leave_id: int, decided_by: Optional[int] = None) -> Leave:
        return self._decide_leave(leave_id, LeaveStatus.APPROVED, decided_by)

    def reject_leave(self, leave_id: int, decided_by: Optional[int] = None) -> Leave:
        return self._decide_leave(leave_id, LeaveStatus.REJECTED, decided_by)

    def get_leaves(self, status: Optional[LeaveStatus] = None,
                   employee_id: Optional[int] = None) -> List[Leave]:
        query = self.db.query(Leave)
        if status:
            query = query.filter(Leave.status == status)
        if employee_id:
            query = query.filter(Leave.employee_id == employee_id)
        return query.order_by(Leave.applied_at.desc(), Leave.id.desc()).all()

    @staticmethod
    def get_leave_detail(leave: Leave) -> dict:
        return {
            "id": leave.id,
            "employee_id": leave.employee_id,
            "employee_name": leave.employee.name if leave.employee else None,
            "start_date": leave.start_date,
            "end_date": leave.end_date,
            "total_days": leave.total_days,
            "status": leave.status,
            "reason": leave.reason,
            "applied_at": leave.applied_at,
            "decided_at": leave.decided_at,
        }

    # ============== 看板 ==============

    def get_leave_balances(self, year: int) -> List[dict]:
        """每位在职员工的年假额度、已用与剩余"""
        employees = self.db.query(Employee).filter(Employee.is_active == True).order_by(Employee.name).all()

        balances = []
        for employee in employees:
            allowed = employee.staff_class.max_leaves_per_year if employee.staff_class else 0
            used = sum(
                leave.total_days for leave in employee.leaves
                if leave.status == LeaveStatus.APPROVED and leave.start_date.year == year
            )
            balances.append({
                "employee_id": employee.id,
                "employee_name": employee.name,
                "total_allowed": allowed,
                "used_leaves": used,
                "remaining_leaves": allowed - used,
            })
        return balances

    def get_dashboard(self, now: Optional[datetime] = None) -> dict:
        """人事看板汇总"""
        now = now or datetime.utcnow()
        today = now.date()
        month_start = today.replace(day=1)
        overdue_before = now - timedelta(days=OVERDUE_LEAVE_DAYS)

        # 员工
        total_staff = self.db.query(Employee).count()
        active_staff = self.db.query(Employee).filter(Employee.is_active == True).count()
        recent_hires = self.db.query(Employee).filter(
            Employee.join_date >= today - timedelta(days=30)
        ).count()

        # 部门
        departments = self.db.query(Department).all()
        active_departments = [d for d in departments if d.is_active]
        department_breakdown = [
            {"id": d.id, "name": d.name, "staff_count": len(d.staff)}
            for d in active_departments
        ]

        # 今日考勤
        today_records = self.db.query(Attendance).filter(Attendance.date == today).all()
        today_attendance = {"total": len(today_records)}
        for status in AttendanceStatus:
            today_attendance[status.value.lower()] = sum(1 for r in today_records if r.status == status)

        # 本月考勤
        monthly_rows = self.db.query(Attendance.status, func.count(Attendance.id)).filter(
            Attendance.date >= month_start,
            Attendance.date <= today
        ).group_by(Attendance.status).all()
        monthly_attendance = {status.value: 0 for status in AttendanceStatus}
        for status, count in monthly_rows:
            monthly_attendance[status.value] = count

        # 请假
        pending_leaves = self.db.query(Leave).filter(Leave.status == LeaveStatus.PENDING).count()
        on_leave_today = self.db.query(Leave).filter(
            Leave.status == LeaveStatus.APPROVED,
            Leave.start_date <= today,
            Leave.end_date >= today
        ).count()
        overdue_leaves = self.db.query(Leave).filter(
            Leave.status == LeaveStatus.PENDING,
            Leave.applied_at < overdue_before
        ).count()

        balances = self.get_leave_balances(today.year)

        alerts = []
        exceeded = [b for b in balances if b["remaining_leaves"] < 0]
        if exceeded:
            alerts.append({
                "type": "warning",
                "title": "Leave Limit Exceeded",
                "message": f"{len(exceeded)} staff members have exceeded their leave limits",
                "count": len(exceeded),
            })
        if overdue_leaves:
            alerts.append({
                "type": "warning",
                "title": "Pending Leave Requests",
                "message": f"{overdue_leaves} leave requests pending for more than {OVERDUE_LEAVE_DAYS} days",
                "count": overdue_leaves,
            })

        recent_attendance = self.db.query(Attendance).order_by(
            Attendance.created_at.desc(), Attendance.id.desc()
        ).limit(5).all()
        recent_leaves = self.db.query(Leave).order_by(
            Leave.applied_at.desc(), Leave.id.desc()
        ).limit(5).all()

        return {
            "stats": {
                "staff": {
                    "total": total_staff,
                    "active": active_staff,
                    "inactive": total_staff - active_staff,
                    "recent_hires": recent_hires,
                },
                "departments": {
                    "total": len(departments),
                    "active": len(active_departments),
                    "breakdown": department_breakdown,
                },
                "attendance": {
                    "today": today_attendance,
                    "monthly": monthly_attendance,
                },
                "leaves": {
                    "pending": pending_leaves,
                    "on_leave_today": on_leave_today,
                    "overdue": overdue_leaves,
                },
            },
            "leave_balance": balances[:LEAVE_BALANCE_LIMIT],
            "alerts": alerts,
            "recent_activity": {
                "attendance": [self.get_attendance_detail(r) for r in recent_attendance],
                "leaves": [self.get_leave_detail(leave) for leave in recent_leaves],
            },
        }
