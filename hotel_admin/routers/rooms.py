"""
房间管理路由
房型与房间、房态、可订查询
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.ontology import Employee, RoomStatus
from hotel_admin.models.schemas import (
    RoomClassCreate, RoomClassUpdate, RoomClassResponse,
    RoomCreate, RoomUpdate, RoomStatusUpdate, RoomResponse
)
from hotel_admin.services import NotFoundError
from hotel_admin.services.room_service import RoomService
from hotel_admin.services.export_service import Column, ExportFormat, export_response
from hotel_admin.security.auth import require_permission
from hotel_admin.security.permissions import ROOM_READ, ROOM_WRITE, ROOM_STATUS

router = APIRouter(prefix="/rooms", tags=["房间管理"])

ROOM_EXPORT_COLUMNS = [
    Column("room_number", "Room No"),
    Column("floor_name", "Floor"),
    Column("room_class_name", "Room Class"),
    Column("rate_per_night", "Rate / Night"),
    Column("status", "Status"),
    Column("has_balcony", "Balcony"),
    Column("has_sea_view", "Sea View"),
    Column("has_kitchenette", "Kitchenette"),
    Column("is_active", "Active"),
    Column("next_cleaning_due", "Next Cleaning"),
]


# ============== 房型 ==============

@router.get("/classes", response_model=List[RoomClassResponse])
def list_room_classes(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_READ))
):
    """获取房型列表"""
    service = RoomService(db)
    return [RoomClassResponse(**service.get_room_class_detail(c))
            for c in service.get_room_classes(is_active)]


@router.get("/classes/summary")
def get_room_class_summary(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_READ))
):
    """房型汇总"""
    return RoomService(db).get_room_class_summary()


@router.get("/classes/{room_class_id}", response_model=RoomClassResponse)
def get_room_class(
    room_class_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_READ))
):
    """获取房型详情"""
    service = RoomService(db)
    room_class = service.get_room_class(room_class_id)
    if not room_class:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="房型不存在")
    return RoomClassResponse(**service.get_room_class_detail(room_class))


@router.post("/classes", response_model=RoomClassResponse)
def create_room_class(
    data: RoomClassCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_WRITE))
):
    """创建房型"""
    service = RoomService(db)
    try:
        room_class = service.create_room_class(data)
        return RoomClassResponse(**service.get_room_class_detail(room_class))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/classes/{room_class_id}", response_model=RoomClassResponse)
def update_room_class(
    room_class_id: int,
    data: RoomClassUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_WRITE))
):
    """更新房型"""
    service = RoomService(db)
    try:
        room_class = service.update_room_class(room_class_id, data)
        return RoomClassResponse(**service.get_room_class_detail(room_class))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/classes/{room_class_id}")
def delete_room_class(
    room_class_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_WRITE))
):
    """删除房型"""
    try:
        RoomService(db).delete_room_class(room_class_id)
        return {"message": "房型已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ============== 房间 ==============

def _list_rooms(service: RoomService, **filters):
    try:
        return service.get_rooms(**filters)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=List[RoomResponse])
def list_rooms(
    search: Optional[str] = None,
    status_filter: Optional[RoomStatus] = Query(None, alias="status"),
    room_class_id: Optional[int] = None,
    floor_id: Optional[int] = None,
    has_balcony: Optional[bool] = None,
    has_sea_view: Optional[bool] = None,
    has_kitchenette: Optional[bool] = None,
    is_active: Optional[bool] = None,
    cleaning_due: Optional[str] = Query(None, description="overdue / due_today / due_week"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_READ))
):
    """获取房间列表"""
    service = RoomService(db)
    rooms = _list_rooms(
        service, search=search, status=status_filter, room_class_id=room_class_id,
        floor_id=floor_id, has_balcony=has_balcony, has_sea_view=has_sea_view,
        has_kitchenette=has_kitchenette, is_active=is_active, cleaning_due=cleaning_due
    )
    return [RoomResponse(**service.get_room_detail(r)) for r in rooms]


@router.get("/export")
def export_rooms(
    format: ExportFormat = ExportFormat.CSV,
    search: Optional[str] = None,
    status_filter: Optional[RoomStatus] = Query(None, alias="status"),
    room_class_id: Optional[int] = None,
    floor_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    cleaning_due: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_READ))
):
    """导出房间"""
    service = RoomService(db)
    rooms = _list_rooms(
        service, search=search, status=status_filter, room_class_id=room_class_id,
        floor_id=floor_id, is_active=is_active, cleaning_due=cleaning_due
    )
    rows = [service.get_room_detail(r) for r in rooms]
    return export_response(format, "rooms", "Rooms", ROOM_EXPORT_COLUMNS, rows)


@router.get("/status-summary")
def get_room_status_summary(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_READ))
):
    """获取房态统计"""
    return RoomService(db).get_room_status_summary()


@router.get("/availability", response_model=List[RoomResponse])
def get_room_availability(
    check_in_date: date,
    check_out_date: date,
    room_class_id: Optional[int] = None,
    guests: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_READ))
):
    """查询可预订房间"""
    service = RoomService(db)
    try:
        rooms = service.get_available_rooms(check_in_date, check_out_date, room_class_id, guests)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return [RoomResponse(**service.get_room_detail(r)) for r in rooms]


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_READ))
):
    """获取房间详情"""
    service = RoomService(db)
    room = service.get_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="房间不存在")
    return RoomResponse(**service.get_room_detail(room))


@router.post("", response_model=RoomResponse)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_WRITE))
):
    """创建房间"""
    service = RoomService(db)
    try:
        room = service.create_room(data)
        return RoomResponse(**service.get_room_detail(room))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: int,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_WRITE))
):
    """更新房间"""
    service = RoomService(db)
    try:
        room = service.update_room(room_id, data)
        return RoomResponse(**service.get_room_detail(room))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/{room_id}/status", response_model=RoomResponse)
def update_room_status(
    room_id: int,
    data: RoomStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_STATUS))
):
    """更新房间状态"""
    service = RoomService(db)
    try:
        room = service.update_room_status(room_id, data.status)
        return RoomResponse(**service.get_room_detail(room))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{room_id}")
def delete_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(ROOM_WRITE))
):
    """删除房间"""
    try:
        RoomService(db).delete_room(room_id)
        return {"message": "房间已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
