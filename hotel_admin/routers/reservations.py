"""
预订管理路由
预订、取消、入住、退房、账单与房态日历
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.ontology import Employee
from hotel_admin.models.schemas import (
    ReservationCreate, ReservationUpdate, ReservationResponse, ReservationCancel,
    CheckInRequest, CheckOutRequest
)
from hotel_admin.services import NotFoundError
from hotel_admin.services.reservation_service import ReservationService
from hotel_admin.services.export_service import Column, ExportFormat, export_response, invoice_to_pdf
from hotel_admin.security.auth import require_permission
from hotel_admin.security.permissions import (
    RESERVATION_READ, RESERVATION_WRITE, RESERVATION_CANCEL,
    CHECKIN_EXECUTE, CHECKOUT_EXECUTE
)

router = APIRouter(prefix="/reservations", tags=["预订管理"])

RESERVATION_EXPORT_COLUMNS = [
    Column("booking_number", "Booking No"),
    Column(lambda r: r.customer.full_name, "Guest"),
    Column(lambda r: r.customer.phone, "Phone"),
    Column(lambda r: r.room.room_number, "Room"),
    Column(lambda r: r.room_class.name, "Room Class"),
    Column("check_in_date", "Check-in"),
    Column("check_out_date", "Check-out"),
    Column("number_of_nights", "Nights"),
    Column("guest_count", "Guests"),
    Column("total_amount", "Total"),
    Column("advance_amount", "Advance"),
    Column("balance_amount", "Balance"),
    Column("payment_status", "Payment"),
    Column("reservation_status", "Status"),
]


def _detail_or_404(service: ReservationService, reservation_id: int) -> ReservationResponse:
    reservation = service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="预订不存在")
    return ReservationResponse(**service.get_reservation_detail(reservation))


@router.get("")
def list_reservations(
    status_filter: Optional[str] = Query(None, alias="status"),
    room_class_id: Optional[int] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_READ))
):
    """获取预订列表（分页 + 统计）"""
    service = ReservationService(db)
    try:
        reservations, pagination = service.get_reservations(
            status_filter, room_class_id, from_date, to_date, search, page, limit
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {
        "reservations": [ReservationResponse(**service.get_reservation_detail(r))
                         for r in reservations],
        "pagination": pagination,
        "stats": service.get_stats(),
    }


@router.get("/export")
def export_reservations(
    format: ExportFormat = ExportFormat.CSV,
    status_filter: Optional[str] = Query(None, alias="status"),
    room_class_id: Optional[int] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_READ))
):
    """导出预订"""
    try:
        reservations = ReservationService(db).get_all_reservations(
            status_filter, room_class_id, from_date, to_date, search
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return export_response(format, "reservations", "Reservations",
                           RESERVATION_EXPORT_COLUMNS, reservations)


@router.get("/calendar")
def get_calendar(
    start: date,
    end: date,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_READ))
):
    """房态日历"""
    try:
        return ReservationService(db).get_calendar(start, end)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("", response_model=ReservationResponse)
def create_reservation(
    data: ReservationCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_WRITE))
):
    """创建预订"""
    service = ReservationService(db)
    try:
        reservation = service.create_reservation(data, booked_by=current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _detail_or_404(service, reservation.id)


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_READ))
):
    """获取预订详情"""
    return _detail_or_404(ReservationService(db), reservation_id)


@router.put("/{reservation_id}", response_model=ReservationResponse)
def update_reservation(
    reservation_id: int,
    data: ReservationUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_WRITE))
):
    """修改预订"""
    service = ReservationService(db)
    try:
        service.update_reservation(reservation_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _detail_or_404(service, reservation_id)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: int,
    data: ReservationCancel,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_CANCEL))
):
    """取消预订"""
    service = ReservationService(db)
    try:
        service.cancel_reservation(reservation_id, data.reason)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _detail_or_404(service, reservation_id)


# ============== 入住 / 退房 ==============

@router.get("/{reservation_id}/checkin")
def get_check_in_preview(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CHECKIN_EXECUTE))
):
    """入住预览"""
    try:
        return ReservationService(db).get_check_in_preview(reservation_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{reservation_id}/checkin")
def check_in(
    reservation_id: int,
    data: CheckInRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CHECKIN_EXECUTE))
):
    """办理入住"""
    try:
        return ReservationService(db).process_check_in(reservation_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{reservation_id}/checkout")
def get_check_out_preview(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CHECKOUT_EXECUTE))
):
    """退房预览"""
    try:
        return ReservationService(db).get_check_out_preview(reservation_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{reservation_id}/checkout")
def check_out(
    reservation_id: int,
    data: CheckOutRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(CHECKOUT_EXECUTE))
):
    """办理退房"""
    try:
        return ReservationService(db).process_check_out(reservation_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{reservation_id}/invoice")
def get_invoice(
    reservation_id: int,
    format: str = Query("json", pattern="^(json|pdf)$"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_permission(RESERVATION_READ))
):
    """账单（JSON 或 PDF）"""
    try:
        invoice = ReservationService(db).get_invoice(reservation_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if format == "pdf":
        return Response(
            content=invoice_to_pdf(invoice),
            media_type="application/pdf",
            headers={"Content-Disposition": f"attachment; filename={invoice['invoice_number']}.pdf"},
        )
    return invoice
