"""
人事管理路由
部门、员工类别、员工账号、考勤、请假与人事看板
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.ontology import Employee, EmployeeRole, LeaveStatus
from hotel_admin.models.schemas import (
    DepartmentCreate, DepartmentUpdate, DepartmentResponse,
    StaffClassCreate, StaffClassUpdate, StaffClassResponse,
    EmployeeCreate, EmployeeUpdate, EmployeeResponse, PasswordReset,
    AttendanceRecord, AttendanceResponse, LeaveApply, LeaveResponse
)
from hotel_admin.services import NotFoundError
from hotel_admin.services.employee_service import EmployeeService
from hotel_admin.services.hr_service import HRService
from hotel_admin.services.export_service import Column, ExportFormat, export_response
from hotel_admin.security.auth import require_permission
from hotel_admin.security.permissions import (
    EMPLOYEE_READ, EMPLOYEE_WRITE, HR_READ, HR_WRITE, LEAVE_DECIDE
)

router = APIRouter(prefix="/hr", tags=["人事管理"])

EMPLOYEE_EXPORT_COLUMNS = [
    Column("username", "Username"),
    Column("name", "Name"),
    Column("email", "Email"),
    Column("phone", "Phone"),
    Column("role", "Role"),
    Column("department_name", "Department"),
    Column("staff_class_name", "Staff Class"),
    Column("join_date", "Join Date"),
    Column("is_active", "Active"),
]


@router.get("/dashboard")
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_READ))
):
    """人事看板"""
    return HRService(db).get_dashboard()


# ============== 部门 ==============

@router.get("/departments", response_model=List[DepartmentResponse])
def list_departments(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_READ))
):
    """获取部门列表"""
    service = HRService(db)
    return [DepartmentResponse(**service.get_department_detail(d))
            for d in service.get_departments(is_active)]


@router.post("/departments", response_model=DepartmentResponse)
def create_department(
    data: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_WRITE))
):
    """创建部门"""
    service = HRService(db)
    try:
        return DepartmentResponse(**service.get_department_detail(service.create_department(data)))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/departments/{department_id}", response_model=DepartmentResponse)
def update_department(
    department_id: int,
    data: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_WRITE))
):
    """更新部门"""
    service = HRService(db)
    try:
        department = service.update_department(department_id, data)
        return DepartmentResponse(**service.get_department_detail(department))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/departments/{department_id}")
def delete_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_WRITE))
):
    """删除部门"""
    try:
        HRService(db).delete_department(department_id)
        return {"message": "部门已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ============== 员工类别 ==============

@router.get("/staff-classes", response_model=List[StaffClassResponse])
def list_staff_classes(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_READ))
):
    """获取员工类别列表"""
    service = HRService(db)
    return [StaffClassResponse(**service.get_staff_class_detail(c)) for c in service.get_staff_classes()]


@router.post("/staff-classes", response_model=StaffClassResponse)
def create_staff_class(
    data: StaffClassCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_WRITE))
):
    """创建员工类别"""
    service = HRService(db)
    try:
        return StaffClassResponse(**service.get_staff_class_detail(service.create_staff_class(data)))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/staff-classes/{staff_class_id}", response_model=StaffClassResponse)
def update_staff_class(
    staff_class_id: int,
    data: StaffClassUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_WRITE))
):
    """更新员工类别"""
    service = HRService(db)
    try:
        staff_class = service.update_staff_class(staff_class_id, data)
        return StaffClassResponse(**service.get_staff_class_detail(staff_class))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/staff-classes/{staff_class_id}")
def delete_staff_class(
    staff_class_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_WRITE))
):
    """删除员工类别"""
    try:
        HRService(db).delete_staff_class(staff_class_id)
        return {"message": "员工类别已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ============== 员工 ==============

@router.get("/employees", response_model=List[EmployeeResponse])
def list_employees(
    department_id: Optional[int] = None,
    role: Optional[EmployeeRole] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(EMPLOYEE_READ))
):
    """获取员工列表"""
    employees = EmployeeService(db).get_employees(department_id, role, is_active, search)
    return [EmployeeResponse(**EmployeeService.get_employee_detail(e)) for e in employees]


@router.get("/employees/export")
def export_employees(
    format: ExportFormat = ExportFormat.CSV,
    department_id: Optional[int] = None,
    role: Optional[EmployeeRole] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(EMPLOYEE_READ))
):
    """导出员工"""
    employees = EmployeeService(db).get_employees(department_id, role, is_active, search)
    rows = [EmployeeService.get_employee_detail(e) for e in employees]
    return export_response(format, "employees", "Employees", EMPLOYEE_EXPORT_COLUMNS, rows)


@router.get("/employees/{employee_id}", response_model=EmployeeResponse)
def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(EMPLOYEE_READ))
):
    """获取员工详情"""
    employee = EmployeeService(db).get_employee(employee_id)
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="员工不存在")
    return EmployeeResponse(**EmployeeService.get_employee_detail(employee))


@router.post("/employees", response_model=EmployeeResponse)
def create_employee(
    data: EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(EMPLOYEE_WRITE))
):
    """创建员工"""
    try:
        employee = EmployeeService(db).create_employee(data)
        return EmployeeResponse(**EmployeeService.get_employee_detail(employee))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/employees/{employee_id}", response_model=EmployeeResponse)
def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(EMPLOYEE_WRITE))
):
    """更新员工"""
    try:
        employee = EmployeeService(db).update_employee(employee_id, data)
        return EmployeeResponse(**EmployeeService.get_employee_detail(employee))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/employees/{employee_id}/password")
def reset_employee_password(
    employee_id: int,
    data: PasswordReset,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(EMPLOYEE_WRITE))
):
    """重置员工密码"""
    try:
        EmployeeService(db).reset_password(employee_id, data, operator=current_user)
        return {"message": "密码已重置"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post("/employees/{employee_id}/deactivate", response_model=EmployeeResponse)
def deactivate_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(EMPLOYEE_WRITE))
):
    """停用员工"""
    try:
        employee = EmployeeService(db).deactivate_employee(employee_id)
        return EmployeeResponse(**EmployeeService.get_employee_detail(employee))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ============== 考勤 ==============

@router.post("/attendance", response_model=AttendanceResponse)
def record_attendance(
    data: AttendanceRecord,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_WRITE))
):
    """记录考勤"""
    service = HRService(db)
    try:
        return AttendanceResponse(**service.get_attendance_detail(service.record_attendance(data)))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/attendance", response_model=List[AttendanceResponse])
def list_attendance(
    on_date: Optional[date] = None,
    employee_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_READ))
):
    """获取考勤记录"""
    service = HRService(db)
    return [AttendanceResponse(**service.get_attendance_detail(r))
            for r in service.get_attendance(on_date, employee_id)]


# ============== 请假 ==============

@router.post("/leaves", response_model=LeaveResponse)
def apply_leave(
    data: LeaveApply,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_WRITE))
):
    """申请请假"""
    service = HRService(db)
    try:
        return LeaveResponse(**service.get_leave_detail(service.apply_leave(data)))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/leaves", response_model=List[LeaveResponse])
def list_leaves(
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    employee_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(HR_READ))
):
    """获取请假记录"""
    service = HRService(db)
    return [LeaveResponse(**service.get_leave_detail(leave))
            for leave in service.get_leaves(status_filter, employee_id)]


@router.post("/leaves/{leave_id}/approve", response_model=LeaveResponse)
def approve_leave(
    leave_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(LEAVE_DECIDE))
):
    """批准请假"""
    service = HRService(db)
    try:
        return LeaveResponse(**service.get_leave_detail(service.approve_leave(leave_id, current_user.id)))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/leaves/{leave_id}/reject", response_model=LeaveResponse)
def reject_leave(
    leave_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(LEAVE_DECIDE))
):
    """驳回请假"""
    service = HRService(db)
    try:
        return LeaveResponse(**service.get_leave_detail(service.reject_leave(leave_id, current_user.id)))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
