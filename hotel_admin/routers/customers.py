"""
客人管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.ontology import Employee
from hotel_admin.models.schemas import CustomerCreate, CustomerUpdate, CustomerResponse, CustomerBan
from hotel_admin.services import NotFoundError
from hotel_admin.services.customer_service import CustomerService
from hotel_admin.services.export_service import Column, ExportFormat, export_response
from hotel_admin.security.auth import require_permission
from hotel_admin.security.permissions import CUSTOMER_READ, CUSTOMER_WRITE, CUSTOMER_BAN

router = APIRouter(prefix="/customers", tags=["客人管理"])

CUSTOMER_EXPORT_COLUMNS = [
    Column("customer_code", "Code"),
    Column("full_name", "Name"),
    Column("email", "Email"),
    Column("phone", "Phone"),
    Column("identity_type", "ID Type"),
    Column("identity_number", "ID Number"),
    Column("nationality", "Nationality"),
    Column("is_vip", "VIP"),
    Column("is_banned", "Banned"),
    Column("reservation_count", "Reservations"),
    Column("created_at", "Created"),
]


@router.get("")
def list_customers(
    search: Optional[str] = None,
    vip: Optional[bool] = None,
    nationality: Optional[str] = Query(None, pattern="^(native|foreigner)$"),
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_READ))
):
    """获取客人列表（分页 + 统计）"""
    service = CustomerService(db)
    customers, pagination = service.get_customers(
        search=search, vip=vip, nationality=nationality,
        sort_by=sort_by, sort_order=sort_order, page=page, limit=limit
    )
    return {
        "customers": [CustomerResponse(**service.get_customer_detail(c)) for c in customers],
        "pagination": pagination,
        "stats": service.get_customer_stats(),
    }


@router.get("/export")
def export_customers(
    format: ExportFormat = ExportFormat.CSV,
    search: Optional[str] = None,
    vip: Optional[bool] = None,
    nationality: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_READ))
):
    """导出客人"""
    service = CustomerService(db)
    customers = service.get_all_customers(search, vip, nationality, sort_by, sort_order)
    rows = [service.get_customer_detail(c) for c in customers]
    return export_response(format, "customers", "Customers", CUSTOMER_EXPORT_COLUMNS, rows)


@router.get("/quick-search", response_model=List[CustomerResponse])
def quick_search_customers(
    q: str = "",
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_READ))
):
    """快速检索客人"""
    service = CustomerService(db)
    return [CustomerResponse(**service.get_customer_detail(c)) for c in service.quick_search(q)]


@router.get("/validate-nic")
def validate_identity_number(
    identity_number: str = Query(..., min_length=1),
    exclude_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_READ))
):
    """证件号校验"""
    return CustomerService(db).validate_identity_number(identity_number, exclude_id)


@router.get("/{customer_id}")
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_READ))
):
    """获取客人详情（含最近预订）"""
    service = CustomerService(db)
    customer = service.get_customer(customer_id)
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="客人不存在")
    return {
        "customer": CustomerResponse(**service.get_customer_detail(customer)),
        "recent_reservations": service.get_recent_reservations(customer_id, 5),
    }


@router.post("", response_model=CustomerResponse)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_WRITE))
):
    """创建客人"""
    service = CustomerService(db)
    try:
        customer = service.create_customer(data)
        return CustomerResponse(**service.get_customer_detail(customer))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_WRITE))
):
    """更新客人信息"""
    service = CustomerService(db)
    try:
        customer = service.update_customer(customer_id, data)
        return CustomerResponse(**service.get_customer_detail(customer))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_WRITE))
):
    """删除客人（软删除）"""
    try:
        CustomerService(db).delete_customer(customer_id)
        return {"message": "客人已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{customer_id}/ban", response_model=CustomerResponse)
def ban_customer(
    customer_id: int,
    data: CustomerBan,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_BAN))
):
    """加入黑名单"""
    service = CustomerService(db)
    try:
        customer = service.ban_customer(customer_id, data.reason)
        return CustomerResponse(**service.get_customer_detail(customer))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{customer_id}/unban", response_model=CustomerResponse)
def unban_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CUSTOMER_BAN))
):
    """移出黑名单"""
    service = CustomerService(db)
    try:
        customer = service.unban_customer(customer_id)
        return CustomerResponse(**service.get_customer_detail(customer))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
