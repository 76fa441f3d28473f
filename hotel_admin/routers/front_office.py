"""
前台路由
前台看板、今日到店/离店、快速检索
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.ontology import Employee
from hotel_admin.services.front_office_service import FrontOfficeService, SearchType
from hotel_admin.security.auth import require_permission
from hotel_admin.security.permissions import RESERVATION_READ, CHECKIN_EXECUTE, CHECKOUT_EXECUTE

router = APIRouter(prefix="/front-office", tags=["前台"])


@router.get("/dashboard")
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_READ))
):
    """前台看板"""
    return FrontOfficeService(db).get_dashboard()


@router.get("/check-ins/today")
def get_today_check_ins(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CHECKIN_EXECUTE))
):
    """今日到店"""
    return FrontOfficeService(db).get_today_check_ins()


@router.get("/check-outs/today")
def get_today_check_outs(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CHECKOUT_EXECUTE))
):
    """今日离店"""
    return FrontOfficeService(db).get_today_check_outs()


@router.get("/quick-search")
def quick_search(
    q: Optional[str] = None,
    search_type: SearchType = Query(SearchType.ALL, alias="type"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_READ))
):
    """快速检索客人、预订与房间"""
    return FrontOfficeService(db).quick_search(q, search_type)
