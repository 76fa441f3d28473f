"""
前台服务
前台看板、今日到店/离店列表、跨客人/预订/房间的快速检索
"""
from datetime import datetime, date, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlalchemy import and_, or_, func
from sqlalchemy.orm import Session
from hotel_admin.models.ontology import (
    Reservation, ReservationStatus, Customer, Room, RoomStatus, Payment, PaymentStatus
)
from hotel_admin.services.customer_service import CustomerService
from hotel_admin.services.listing import contains_any
from hotel_admin.services.reservation_service import (
    ReservationService, ACTIVE_STATUSES, REVENUE_STATUSES
)
from hotel_admin.services.room_service import RoomService

UPCOMING_LIMIT = 10
RECENT_ACTIVITY_LIMIT = 10
SEARCH_LIMIT = 10
MIN_SEARCH_LENGTH = 2

UNAVAILABLE_ROOM_STATUSES = (RoomStatus.MAINTENANCE, RoomStatus.OUT_OF_ORDER, RoomStatus.CLEANING)


class SearchType(str, Enum):
    """快速检索范围"""
    ALL = "all"
    NIC = "nic"
    PHONE = "phone"
    EMAIL = "email"
    NAME = "name"
    BOOKING = "booking"
    ROOM = "room"


_CUSTOMER_SEARCH_TYPES = (SearchType.ALL, SearchType.NIC, SearchType.PHONE,
                          SearchType.EMAIL, SearchType.NAME)


def _day_window(day: date):
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class FrontOfficeService:
    """前台服务"""

    def __init__(self, db: Session):
        self.db = db
        self.reservation_service = ReservationService(db)
        self.customer_service = CustomerService(db)
        self.room_service = RoomService(db)

    @staticmethod
    def _upcoming_row(r: Reservation) -> dict:
        return {
            "id": r.id,
            "booking_number": r.booking_number,
            "customer_name": r.customer.full_name,
            "customer_phone": r.customer.phone,
            "room_number": r.room.room_number,
            "room_class_name": r.room_class.name,
            "check_in_date": r.check_in_date,
            "check_out_date": r.check_out_date,
            "adults": r.adults or 0,
            "children": r.children or 0,
            "total_amount": r.total_amount or 0,
            "reservation_status": r.reservation_status,
        }

    def _revenue(self, *conditions) -> Decimal:
        total = self.db.query(func.coalesce(func.sum(Reservation.total_amount), 0)).filter(
            Reservation.reservation_status.in_(REVENUE_STATUSES), *conditions
        ).scalar()
        return Decimal(str(total or 0))

    def get_dashboard(self, now: Optional[datetime] = None) -> dict:
        """
        前台看板

        房态分布与入住率、今日到店/离店、营收汇总、待收款、提醒事项、
        最近 24 小时动态
        """
        now = now or datetime.now()
        today = now.date()
        day_start, day_end = _day_window(today)
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)
        month_start = today.replace(day=1)
        next_month = (month_start + timedelta(days=32)).replace(day=1)

        # 房态
        status_rows = self.db.query(Room.status, func.count(Room.id)).filter(
            Room.is_active == True
        ).group_by(Room.status).all()
        by_status = {s.value: 0 for s in RoomStatus}
        for room_status, count in status_rows:
            by_status[room_status.value] = count
        total_rooms = sum(by_status.values())
        occupied = by_status[RoomStatus.OCCUPIED.value]
        unavailable = sum(by_status[s.value] for s in UNAVAILABLE_ROOM_STATUSES)
        occupancy_rate = round(occupied / total_rooms * 100, 1) if total_rooms else 0

        # 今日到店/离店
        total_today = self.db.query(Reservation).filter(
            or_(Reservation.check_in_date == today, Reservation.check_out_date == today),
            Reservation.reservation_status.in_(ACTIVE_STATUSES)
        ).count()
        arrivals = self.db.query(Reservation).filter(
            Reservation.check_in_date == today,
            Reservation.reservation_status == ReservationStatus.CONFIRMED
        ).order_by(Reservation.id).limit(UPCOMING_LIMIT).all()
        departures = self.db.query(Reservation).filter(
            Reservation.check_out_date == today,
            Reservation.reservation_status == ReservationStatus.CHECKED_IN
        ).order_by(Reservation.id).limit(UPCOMING_LIMIT).all()
        checked_in_today = self.db.query(Reservation).filter(
            Reservation.actual_check_in >= day_start, Reservation.actual_check_in < day_end
        ).count()
        checked_out_today = self.db.query(Reservation).filter(
            Reservation.actual_check_out >= day_start, Reservation.actual_check_out < day_end
        ).count()

        # 营收
        today_revenue = self._revenue(or_(
            Reservation.check_in_date == today,
            and_(Reservation.actual_check_in >= day_start, Reservation.actual_check_in < day_end),
        ))
        week_revenue = self._revenue(
            Reservation.check_in_date >= week_start,
            Reservation.check_in_date < week_start + timedelta(days=7),
        )
        month_revenue = self._revenue(
            Reservation.check_in_date >= month_start,
            Reservation.check_in_date < next_month,
        )
        collected_today = self.db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
            Payment.created_at >= day_start, Payment.created_at < day_end
        ).scalar() or 0

        pending_count, pending_balance = self.db.query(
            func.count(Reservation.id), func.coalesce(func.sum(Reservation.balance_amount), 0)
        ).filter(
            Reservation.payment_status.in_((PaymentStatus.PENDING, PaymentStatus.PARTIAL)),
            Reservation.reservation_status.in_(ACTIVE_STATUSES)
        ).one()

        overdue_checkouts = self.db.query(Reservation).filter(
            Reservation.check_out_date < today,
            Reservation.reservation_status == ReservationStatus.CHECKED_IN
        ).count()

        # 最近 24 小时动态
        since = now - timedelta(hours=24)
        recent = self.db.query(Reservation).filter(or_(
            Reservation.actual_check_in >= since,
            Reservation.actual_check_out >= since,
            Reservation.created_at >= since,
        )).order_by(Reservation.updated_at.desc(), Reservation.id.desc()).limit(RECENT_ACTIVITY_LIMIT).all()

        return {
            "stats": {
                "occupancy": {
                    "total_rooms": total_rooms,
                    "occupied_rooms": occupied,
                    "available_rooms": by_status[RoomStatus.AVAILABLE.value],
                    "maintenance_rooms": unavailable,
                    "occupancy_rate": occupancy_rate,
                    "by_status": by_status,
                },
                "reservations": {
                    "total_today": total_today,
                    "checking_in_today": len(arrivals),
                    "checking_out_today": len(departures),
                    "checked_in_today": checked_in_today,
                    "checked_out_today": checked_out_today,
                },
                "revenue": {
                    "today_revenue": float(today_revenue),
                    "week_revenue": float(week_revenue),
                    "month_revenue": float(month_revenue),
                    "collected_today": float(collected_today),
                    "pending_payments": float(pending_balance),
                },
                "alerts": {
                    "overdue_checkouts": overdue_checkouts,
                    "maintenance_rooms": unavailable,
                    "pending_payments": pending_count,
                },
            },
            "recent_activities": [self._activity(r) for r in recent],
            "upcoming_check_ins": [self._upcoming_row(r) for r in arrivals],
            "upcoming_check_outs": [self._upcoming_row(r) for r in departures],
        }

    @staticmethod
    def _activity(r: Reservation) -> dict:
        if r.actual_check_out:
            kind, description, timestamp = "CHECK_OUT", "Guest checked out", r.actual_check_out
        elif r.actual_check_in:
            kind, description, timestamp = "CHECK_IN", "Guest checked in", r.actual_check_in
        else:
            kind, description, timestamp = "BOOKING", "New booking created", r.created_at
        return {
            "id": r.id,
            "type": kind,
            "description": description,
            "booking_number": r.booking_number,
            "customer_name": r.customer.full_name,
            "room_number": r.room.room_number,
            "amount": r.total_amount or 0,
            "timestamp": timestamp,
            "status": r.reservation_status,
        }

    # ============== 今日到店 / 离店 ==============

    def get_today_check_ins(self, today: Optional[date] = None) -> dict:
        """今日到店：待入住在前，已入住在后"""
        today = today or date.today()
        reservations = self.db.query(Reservation).filter(
            Reservation.check_in_date == today,
            Reservation.reservation_status.in_(ACTIVE_STATUSES)
        ).order_by(Reservation.id).all()
        reservations.sort(key=lambda r: r.reservation_status != ReservationStatus.CONFIRMED)

        return {
            "reservations": [self.reservation_service.get_reservation_detail(r) for r in reservations],
            "stats": {
                "total": len(reservations),
                "pending": sum(1 for r in reservations
                               if r.reservation_status == ReservationStatus.CONFIRMED),
                "checked_in": sum(1 for r in reservations
                                  if r.reservation_status == ReservationStatus.CHECKED_IN),
                "pending_payments": sum(1 for r in reservations
                                        if r.payment_status != PaymentStatus.PAID),
            },
        }

    def get_today_check_outs(self, today: Optional[date] = None) -> dict:
        """今日离店：在住在前，其后为已退房与尚未入住"""
        today = today or date.today()
        order = {
            ReservationStatus.CHECKED_IN: 0,
            ReservationStatus.CHECKED_OUT: 1,
            ReservationStatus.CONFIRMED: 2,
        }
        reservations = self.db.query(Reservation).filter(
            Reservation.check_out_date == today,
            Reservation.reservation_status.in_(tuple(order))
        ).order_by(Reservation.id).all()
        reservations.sort(key=lambda r: order[r.reservation_status])

        rows = []
        for r in reservations:
            row = self.reservation_service.get_reservation_detail(r)
            row["paid_amount"] = (r.total_amount or 0) - (r.balance_amount or 0)
            rows.append(row)

        def count(status):
            return sum(1 for r in reservations if r.reservation_status == status)

        return {
            "reservations": rows,
            "stats": {
                "total": len(reservations),
                "pending_checkout": count(ReservationStatus.CHECKED_IN),
                "checked_out": count(ReservationStatus.CHECKED_OUT),
                "confirmed": count(ReservationStatus.CONFIRMED),
                "pending_payments": sum(1 for r in reservations
                                        if r.payment_status != PaymentStatus.PAID),
            },
        }

    # ============== 快速检索 ==============

    def _search_customers(self, q: str, search_type: SearchType) -> list:
        columns = []
        if search_type in (SearchType.ALL, SearchType.NIC):
            columns.append(Customer.identity_number)
        if search_type in (SearchType.ALL, SearchType.PHONE):
            columns.append(Customer.phone)
        if search_type in (SearchType.ALL, SearchType.EMAIL):
            columns.append(Customer.email)
        if search_type in (SearchType.ALL, SearchType.NAME):
            columns.extend([Customer.first_name, Customer.last_name])

        customers = self.db.query(Customer).filter(
            Customer.is_active == True, contains_any(q, *columns)
        ).order_by(Customer.first_name).limit(SEARCH_LIMIT).all()

        results = []
        for customer in customers:
            detail = self.customer_service.get_customer_detail(customer)
            detail["recent_reservations"] = self.customer_service.get_recent_reservations(customer.id, 3)
            results.append(detail)
        return results

    def _search_reservations(self, q: str) -> list:
        reservations = self.db.query(Reservation).filter(
            contains_any(q, Reservation.booking_number)
        ).order_by(Reservation.id.desc()).limit(SEARCH_LIMIT).all()
        return [self.reservation_service.get_reservation_detail(r) for r in reservations]

    def _search_rooms(self, q: str) -> list:
        rooms = self.db.query(Room).filter(
            Room.is_active == True, contains_any(q, Room.room_number)
        ).order_by(Room.room_number).limit(SEARCH_LIMIT).all()

        results = []
        for room in rooms:
            detail = self.room_service.get_room_detail(room)
            current = self.db.query(Reservation).filter(
                Reservation.room_id == room.id,
                Reservation.reservation_status.in_(ACTIVE_STATUSES)
            ).order_by(Reservation.check_in_date.desc()).first()
            detail["current_guest"] = current.customer.full_name if current else None
            detail["current_booking_number"] = current.booking_number if current else None
            results.append(detail)
        return results

    def quick_search(self, q: Optional[str], search_type: SearchType = SearchType.ALL) -> dict:
        """按证件号/电话/邮箱/姓名检索客人，按预订号检索预订，按房号检索房间"""
        q = (q or "").strip()
        result = {"query": q, "type": search_type, "customers": [], "reservations": [], "rooms": []}
        if len(q) < MIN_SEARCH_LENGTH:
            result["message"] = f"请输入至少 {MIN_SEARCH_LENGTH} 个字符"
        else:
            if search_type in _CUSTOMER_SEARCH_TYPES:
                result["customers"] = self._search_customers(q, search_type)
            if search_type in (SearchType.ALL, SearchType.BOOKING):
                result["reservations"] = self._search_reservations(q)
            if search_type in (SearchType.ALL, SearchType.ROOM):
                result["rooms"] = self._search_rooms(q)

        result["stats"] = {
            "customers_found": len(result["customers"]),
            "reservations_found": len(result["reservations"]),
            "rooms_found": len(result["rooms"]),
            "total_results": len(result["customers"]) + len(result["reservations"]) + len(result["rooms"]),
        }
        return result
