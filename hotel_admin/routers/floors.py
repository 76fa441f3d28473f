"""
楼层管理路由
楼层与楼层规划
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.ontology import Employee
from hotel_admin.models.schemas import (
    FloorCreate, FloorUpdate, FloorResponse,
    FloorPlanCreate, FloorPlanUpdate, FloorPlanResponse
)
from hotel_admin.services import NotFoundError
from hotel_admin.services.floor_service import FloorService
from hotel_admin.services.export_service import Column, ExportFormat, export_response
from hotel_admin.security.auth import require_permission
from hotel_admin.security.permissions import FLOOR_READ, FLOOR_WRITE

router = APIRouter(prefix="/floors", tags=["楼层管理"])

FLOOR_EXPORT_COLUMNS = [
    Column("floor_number", "Floor No"),
    Column("name", "Name"),
    Column("description", "Description"),
    Column("room_count", "Rooms"),
]

PLAN_EXPORT_COLUMNS = [
    Column("floor_name", "Floor"),
    Column("no_of_room", "No. of Rooms"),
    Column("start_room_no", "Start Room No"),
    Column(lambda p: ", ".join(str(n) for n in p.room_numbers), "Room Numbers"),
]


@router.get("", response_model=List[FloorResponse])
def list_floors(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_READ))
):
    """获取楼层列表"""
    service = FloorService(db)
    return [FloorResponse(**service.get_floor_detail(f)) for f in service.get_floors()]


@router.get("/export")
def export_floors(
    format: ExportFormat = ExportFormat.CSV,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_READ))
):
    """导出楼层"""
    service = FloorService(db)
    rows = [service.get_floor_detail(f) for f in service.get_floors()]
    return export_response(format, "floors", "Floors", FLOOR_EXPORT_COLUMNS, rows)


# ============== 楼层规划 ==============

@router.get("/plans", response_model=List[FloorPlanResponse])
def list_floor_plans(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_READ))
):
    """获取楼层规划列表"""
    return FloorService(db).get_plans()


@router.get("/plans/export")
def export_floor_plans(
    format: ExportFormat = ExportFormat.CSV,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_READ))
):
    """导出楼层规划"""
    plans = FloorService(db).get_plans()
    return export_response(format, "floor_plans", "Floor Plans", PLAN_EXPORT_COLUMNS, plans)


@router.post("/plans", response_model=FloorPlanResponse)
def create_floor_plan(
    data: FloorPlanCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_WRITE))
):
    """创建楼层规划"""
    try:
        return FloorService(db).create_plan(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/plans/{plan_id}", response_model=FloorPlanResponse)
def update_floor_plan(
    plan_id: int,
    data: FloorPlanUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_WRITE))
):
    """更新楼层规划"""
    try:
        return FloorService(db).update_plan(plan_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/plans/{plan_id}")
def delete_floor_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_WRITE))
):
    """删除楼层规划"""
    try:
        FloorService(db).delete_plan(plan_id)
        return {"message": "楼层规划已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# ============== 楼层 ==============

@router.get("/{floor_id}", response_model=FloorResponse)
def get_floor(
    floor_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_READ))
):
    """获取楼层详情"""
    service = FloorService(db)
    floor = service.get_floor(floor_id)
    if not floor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="楼层不存在")
    return FloorResponse(**service.get_floor_detail(floor))


@router.post("", response_model=FloorResponse)
def create_floor(
    data: FloorCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_WRITE))
):
    """创建楼层"""
    service = FloorService(db)
    try:
        floor = service.create_floor(data)
        return FloorResponse(**service.get_floor_detail(floor))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{floor_id}", response_model=FloorResponse)
def update_floor(
    floor_id: int,
    data: FloorUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_WRITE))
):
    """更新楼层"""
    service = FloorService(db)
    try:
        floor = service.update_floor(floor_id, data)
        return FloorResponse(**service.get_floor_detail(floor))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{floor_id}")
def delete_floor(
    floor_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(FLOOR_WRITE))
):
    """删除楼层"""
    try:
        FloorService(db).delete_floor(floor_id)
        return {"message": "楼层已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
