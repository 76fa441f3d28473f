"""
预订渠道路由
预订类型与预订渠道
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.ontology import Employee
from hotel_admin.models.schemas import (
    BookingTypeCreate, BookingTypeResponse,
    BookingSourceCreate, BookingSourceUpdate, BookingSourceResponse
)
from hotel_admin.services import NotFoundError
from hotel_admin.services.booking_service import BookingService
from hotel_admin.services.export_service import Column, ExportFormat, export_response
from hotel_admin.security.auth import require_permission
from hotel_admin.security.permissions import BOOKING_SOURCE_READ, BOOKING_SOURCE_WRITE

router = APIRouter(prefix="/booking-sources", tags=["预订渠道"])

SOURCE_EXPORT_COLUMNS = [
    Column("booking_type_name", "Booking Type"),
    Column("booking_source", "Booking Source"),
    Column("commission_rate", "Commission %"),
    Column("total_balance", "Total Balance"),
    Column("paid_amount", "Paid"),
    Column("due_amount", "Due"),
]


# ============== 预订类型 ==============

@router.get("/types", response_model=List[BookingTypeResponse])
def list_booking_types(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_READ))
):
    """获取预订类型列表"""
    service = BookingService(db)
    return [BookingTypeResponse(**service.get_type_detail(t)) for t in service.get_types()]


@router.post("/types", response_model=BookingTypeResponse)
def create_booking_type(
    data: BookingTypeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_WRITE))
):
    """创建预订类型"""
    service = BookingService(db)
    try:
        booking_type = service.create_type(data)
        return BookingTypeResponse(**service.get_type_detail(booking_type))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/types/{type_id}", response_model=BookingTypeResponse)
def update_booking_type(
    type_id: int,
    data: BookingTypeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_WRITE))
):
    """更新预订类型"""
    service = BookingService(db)
    try:
        booking_type = service.update_type(type_id, data)
        return BookingTypeResponse(**service.get_type_detail(booking_type))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/types/{type_id}")
def delete_booking_type(
    type_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_WRITE))
):
    """删除预订类型"""
    try:
        BookingService(db).delete_type(type_id)
        return {"message": "预订类型已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ============== 预订渠道 ==============

@router.get("", response_model=List[BookingSourceResponse])
def list_booking_sources(
    search: Optional[str] = None,
    booking_type_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_READ))
):
    """获取预订渠道列表"""
    service = BookingService(db)
    return [BookingSourceResponse(**service.get_source_detail(s))
            for s in service.get_sources(search, booking_type_id)]


@router.get("/export")
def export_booking_sources(
    format: ExportFormat = ExportFormat.CSV,
    search: Optional[str] = None,
    booking_type_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_READ))
):
    """导出预订渠道"""
    service = BookingService(db)
    rows = [service.get_source_detail(s) for s in service.get_sources(search, booking_type_id)]
    return export_response(format, "booking_sources", "Booking Sources", SOURCE_EXPORT_COLUMNS, rows)


@router.get("/{source_id}", response_model=BookingSourceResponse)
def get_booking_source(
    source_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_READ))
):
    """获取预订渠道详情"""
    service = BookingService(db)
    source = service.get_source(source_id)
    if not source:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="预订渠道不存在")
    return BookingSourceResponse(**service.get_source_detail(source))


@router.post("", response_model=BookingSourceResponse)
def create_booking_source(
    data: BookingSourceCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_WRITE))
):
    """创建预订渠道"""
    service = BookingService(db)
    try:
        source = service.create_source(data)
        return BookingSourceResponse(**service.get_source_detail(source))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{source_id}", response_model=BookingSourceResponse)
def update_booking_source(
    source_id: int,
    data: BookingSourceUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_WRITE))
):
    """更新预订渠道"""
    service = BookingService(db)
    try:
        source = service.update_source(source_id, data)
        return BookingSourceResponse(**service.get_source_detail(source))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{source_id}")
def delete_booking_source(
    source_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(BOOKING_SOURCE_WRITE))
):
    """删除预订渠道"""
    try:
        BookingService(db).delete_source(source_id)
        return {"message": "预订渠道已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
