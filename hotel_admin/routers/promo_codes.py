"""
促销码路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.ontology import Employee, PromoCodeStatus
from hotel_admin.models.schemas import (
    PromoCodeCreate, PromoCodeUpdate, PromoCodeResponse, PromoCodeValidate
)
from hotel_admin.services import NotFoundError
from hotel_admin.services.promo_code_service import PromoCodeService
from hotel_admin.services.export_service import Column, ExportFormat, export_response
from hotel_admin.security.auth import require_permission
from hotel_admin.security.permissions import PROMO_READ, PROMO_WRITE

router = APIRouter(prefix="/promo-codes", tags=["促销码"])

PROMO_EXPORT_COLUMNS = [
    Column("promocode", "Promo Code"),
    Column("room_type", "Room Type"),
    Column("from_date", "From"),
    Column("to_date", "To"),
    Column("discount", "Discount %"),
    Column("status", "Status"),
]


@router.get("", response_model=List[PromoCodeResponse])
def list_promo_codes(
    search: Optional[str] = None,
    status_filter: Optional[PromoCodeStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(PROMO_READ))
):
    """获取促销码列表"""
    return PromoCodeService(db).get_promo_codes(search, status_filter)


@router.get("/export")
def export_promo_codes(
    format: ExportFormat = ExportFormat.CSV,
    search: Optional[str] = None,
    status_filter: Optional[PromoCodeStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(PROMO_READ))
):
    """导出促销码"""
    promos = PromoCodeService(db).get_promo_codes(search, status_filter)
    return export_response(format, "promo_codes", "Promo Codes", PROMO_EXPORT_COLUMNS, promos)


@router.post("/validate")
def validate_promo_code(
    data: PromoCodeValidate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(PROMO_READ))
):
    """校验促销码"""
    try:
        return PromoCodeService(db).validate_for_room_class(data.promocode, data.room_class_id, data.stay_date)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{promo_id}", response_model=PromoCodeResponse)
def get_promo_code(
    promo_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(PROMO_READ))
):
    """获取促销码详情"""
    promo = PromoCodeService(db).get_promo_code(promo_id)
    if not promo:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="促销码不存在")
    return promo


@router.post("", response_model=PromoCodeResponse)
def create_promo_code(
    data: PromoCodeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(PROMO_WRITE))
):
    """创建促销码"""
    try:
        return PromoCodeService(db).create_promo_code(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{promo_id}", response_model=PromoCodeResponse)
def update_promo_code(
    promo_id: int,
    data: PromoCodeUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(PROMO_WRITE))
):
    """更新促销码"""
    try:
        return PromoCodeService(db).update_promo_code(promo_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{promo_id}")
def delete_promo_code(
    promo_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(PROMO_WRITE))
):
    """删除促销码"""
    try:
        PromoCodeService(db).delete_promo_code(promo_id)
        return {"message": "促销码已删除"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
