"""
预订服务 - 本体操作层
管理 Reservation 对象：预订、取消、入住、退房、账单与房态日历
"""
import logging
import math
from datetime import datetime, date, time
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy import and_, or_, desc, func
from sqlalchemy.orm import Session
from hotel_admin.models.ontology import (
    Reservation, ReservationStatus, Customer, Room, RoomClass, RoomStatus,
    BookingSource, BillingType, DiscountType, Payment, PaymentType
)
from hotel_admin.models.schemas import (
    ReservationCreate, ReservationUpdate, CheckInRequest, CheckOutRequest
)
from hotel_admin.services import NotFoundError
from hotel_admin.services import pricing
from hotel_admin.services.listing import contains_any, paginate
from hotel_admin.services.promo_code_service import PromoCodeService

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)
REVENUE_STATUSES = (
    ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN, ReservationStatus.CHECKED_OUT
)

# 创建/修改时参与计价的字段
_PRICING_FIELDS = (
    "room_id", "room_class_id", "check_in_date", "check_out_date", "check_in_time",
    "check_out_time", "adults", "children", "infants", "booking_source_id",
    "billing_type", "discount_type", "discount_value", "promo_code",
    "service_charge", "tax", "commission_percent",
)


def parse_date(value: Optional[str], field: str) -> Optional[date]:
    """解析 YYYY-MM-DD，格式错误抛出 ValueError"""
    if value is None or value == "":
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"{field} 日期格式不正确: {value}")


def _month_start(d: date, offset: int = 0) -> date:
    month_index = d.year * 12 + (d.month - 1) + offset
    return date(month_index // 12, month_index % 12 + 1, 1)


class ReservationService:
    """预订服务"""

    def __init__(self, db: Session):
        self.db = db
        self.promo_service = PromoCodeService(db)

    def _generate_booking_number(self, today: Optional[date] = None) -> str:
        """生成预订号：BK + yymmdd + 当日三位序号"""
        today = today or date.today()
        prefix = f"BK{today.strftime('%y%m%d')}"
        latest = self.db.query(Reservation).filter(
            Reservation.booking_number.like(f"{prefix}%")
        ).order_by(desc(Reservation.booking_number)).first()

        sequence = 1
        if latest:
            try:
                sequence = int(latest.booking_number[-3:]) + 1
            except ValueError:
                sequence = 1
        return f"{prefix}{str(sequence).zfill(3)}"

    # ============== 查询 ==============

    def _filtered(self, status: Optional[str] = None, room_class_id: Optional[int] = None,
                  from_date: Optional[str] = None, to_date: Optional[str] = None,
                  search: Optional[str] = None):
        query = self.db.query(Reservation).join(
            Customer, Reservation.customer_id == Customer.id
        ).join(Room, Reservation.room_id == Room.id)

        if status and status.lower() != "all":
            try:
                query = query.filter(Reservation.reservation_status == ReservationStatus(status.upper()))
            except ValueError:
                raise ValueError(f"未知的预订状态: {status}")

        if room_class_id:
            query = query.filter(Reservation.room_class_id == room_class_id)

        start = parse_date(from_date, "from_date")
        end = parse_date(to_date, "to_date")
        if start and end:
            query = query.filter(or_(
                Reservation.check_in_date.between(start, end),
                Reservation.check_out_date.between(start, end),
                and_(Reservation.check_in_date <= start, Reservation.check_out_date >= end),
            ))
        elif start:
            query = query.filter(Reservation.check_in_date >= start)
        elif end:
            query = query.filter(Reservation.check_out_date <= end)

        condition = contains_any(
            search, Reservation.booking_number, Customer.first_name, Customer.last_name,
            Customer.phone, Customer.email, Room.room_number
        )
        if condition is not None:
            query = query.filter(condition)

        return query.order_by(Reservation.reservation_status.asc(), Reservation.check_in_date.desc())

    def get_reservations(self, status: Optional[str] = None, room_class_id: Optional[int] = None,
                         from_date: Optional[str] = None, to_date: Optional[str] = None,
                         search: Optional[str] = None, page: int = 1,
                         limit: Optional[int] = None) -> Tuple[List[Reservation], dict]:
        """获取预订列表（分页）"""
        query = self._filtered(status, room_class_id, from_date, to_date, search)
        return paginate(query, page, limit)

    def get_all_reservations(self, status: Optional[str] = None, room_class_id: Optional[int] = None,
                             from_date: Optional[str] = None, to_date: Optional[str] = None,
                             search: Optional[str] = None) -> List[Reservation]:
        """导出用：不分页"""
        return self._filtered(status, room_class_id, from_date, to_date, search).all()

    def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        """获取单个预订"""
        return self.db.query(Reservation).filter(Reservation.id == reservation_id).first()

    def get_reservation_detail(self, r: Reservation) -> dict:
        """获取预订详情（扁平结构）"""
        customer = r.customer
        return {
            "id": r.id,
            "booking_number": r.booking_number,
            "customer_id": r.customer_id,
            "customer_code": customer.customer_code,
            "customer_name": customer.full_name,
            "customer_phone": customer.phone,
            "customer_email": customer.email,
            "is_vip": bool(customer.is_vip),
            "room_id": r.room_id,
            "room_number": r.room.room_number,
            "floor_name": r.room.floor.name if r.room.floor else None,
            "room_class_id": r.room_class_id,
            "room_class_name": r.room_class.name,
            "booking_source_id": r.booking_source_id,
            "booking_source_name": r.booking_source.booking_source if r.booking_source else None,
            "check_in_date": r.check_in_date,
            "check_out_date": r.check_out_date,
            "check_in_time": r.check_in_time,
            "check_out_time": r.check_out_time,
            "number_of_nights": r.number_of_nights,
            "adults": r.adults or 0,
            "children": r.children or 0,
            "infants": r.infants or 0,
            "guest_count": r.guest_count,
            "booking_type": r.booking_type,
            "purpose_of_visit": r.purpose_of_visit,
            "arrival_from": r.arrival_from,
            "special_requests": r.special_requests,
            "remarks": r.remarks,
            "billing_type": r.billing_type,
            "base_room_rate": r.base_room_rate or 0,
            "total_room_charge": r.total_room_charge or 0,
            "extra_charges": r.extra_charges or 0,
            "discount_type": r.discount_type,
            "discount_value": r.discount_value or 0,
            "discount_reason": r.discount_reason,
            "discount_amount": r.discount_amount or 0,
            "promo_code": r.promo_code,
            "service_charge": r.service_charge or 0,
            "tax": r.tax or 0,
            "commission_percent": r.commission_percent or 0,
            "commission_amount": r.commission_amount or 0,
            "total_amount": r.total_amount or 0,
            "advance_amount": r.advance_amount or 0,
            "balance_amount": r.balance_amount or 0,
            "payment_method": r.payment_method,
            "payment_status": r.payment_status,
            "reservation_status": r.reservation_status,
            "actual_check_in": r.actual_check_in,
            "actual_check_out": r.actual_check_out,
            "cancellation_reason": r.cancellation_reason,
            "cancellation_date": r.cancellation_date,
            "booked_by": r.booked_by,
            "booked_by_name": r.booked_by_staff.name if r.booked_by_staff else None,
            "can_check_in": r.can_check_in,
            "can_check_out": r.can_check_out,
            "payments": [
                {
                    "id": p.id,
                    "amount": p.amount,
                    "payment_method": p.payment_method,
                    "payment_type": p.payment_type,
                    "remarks": p.remarks,
                    "created_at": p.created_at,
                }
                for p in r.payments
            ],
            "created_at": r.created_at,
            "updated_at": r.updated_at,
        }

    def get_stats(self, today: Optional[date] = None) -> dict:
        """预订统计"""
        today = today or date.today()
        this_month = _month_start(today)
        next_month = _month_start(today, 1)
        last_month = _month_start(today, -1)

        base = self.db.query(Reservation)
        total = base.count()
        active = base.filter(Reservation.reservation_status == ReservationStatus.CHECKED_IN).count()
        today_check_ins = base.filter(
            Reservation.check_in_date == today,
            Reservation.reservation_status.in_(ACTIVE_STATUSES)
        ).count()
        today_check_outs = base.filter(
            Reservation.check_out_date == today,
            Reservation.reservation_status == ReservationStatus.CHECKED_IN
        ).count()
        pending = base.filter(Reservation.reservation_status == ReservationStatus.CONFIRMED).count()
        cancelled = base.filter(Reservation.reservation_status == ReservationStatus.CANCELLED).count()

        monthly = base.filter(
            Reservation.check_in_date >= this_month,
            Reservation.check_in_date < next_month,
            Reservation.reservation_status.in_(REVENUE_STATUSES)
        ).all()
        monthly_revenue = sum((r.total_amount or Decimal("0") for r in monthly), Decimal("0"))
        room_nights = sum(r.number_of_nights or 0 for r in monthly)

        last_month_revenue = self.db.query(func.coalesce(func.sum(Reservation.total_amount), 0)).filter(
            Reservation.check_in_date >= last_month,
            Reservation.check_in_date < this_month,
            Reservation.reservation_status.in_(REVENUE_STATUSES)
        ).scalar() or 0
        last_month_revenue = float(last_month_revenue)

        total_rooms = self.db.query(Room).count()

        average_daily_rate = round(float(monthly_revenue) / room_nights, 2) if room_nights else 0
        occupancy_rate = round(active / total_rooms * 100) if total_rooms else 0
        revenue_growth = (
            round((float(monthly_revenue) - last_month_revenue) / last_month_revenue * 100)
            if last_month_revenue > 0 else 0
        )

        return {
            "total_reservations": total,
            "active_reservations": active,
            "today_check_ins": today_check_ins,
            "today_check_outs": today_check_outs,
            "pending_reservations": pending,
            "cancelled_reservations": cancelled,
            "monthly_revenue": float(monthly_revenue),
            "average_daily_rate": average_daily_rate,
            "occupancy_rate": occupancy_rate,
            "revenue_growth": revenue_growth,
            "total_room_nights": room_nights,
        }

    # ============== 创建 / 修改 ==============

    def _check_room_free(self, room_id: int, check_in: date, check_out: date,
                         exclude_id: Optional[int] = None):
        query = self.db.query(Reservation).filter(
            Reservation.room_id == room_id,
            Reservation.reservation_status.in_(ACTIVE_STATUSES),
            Reservation.check_in_date < check_out,
            Reservation.check_out_date > check_in,
        )
        if exclude_id:
            query = query.filter(Reservation.id != exclude_id)
        conflict = query.first()
        if conflict:
            raise ValueError(
                f"房间在 {conflict.check_in_date} 至 {conflict.check_out_date} 已被预订"
                f" ({conflict.booking_number})"
            )

    def _validate_and_price(self, values: dict, customer: Customer,
                            exclude_id: Optional[int] = None) -> dict:
        """校验预订规则并计算金额，返回需要写入的字段"""
        check_in = values["check_in_date"]
        check_out = values["check_out_date"]
        if check_out <= check_in:
            raise ValueError("离店日期必须晚于入住日期")

        if customer.is_banned:
            raise ValueError(f"客人 {customer.full_name} 已被列入黑名单")
        if not customer.is_active:
            raise ValueError("客人档案已停用")

        room_class = self.db.query(RoomClass).filter(RoomClass.id == values["room_class_id"]).first()
        if not room_class:
            raise ValueError("房型不存在")

        room = self.db.query(Room).filter(Room.id == values["room_id"]).first()
        if not room:
            raise ValueError("房间不存在")
        if room.room_class_id != room_class.id:
            raise ValueError(f"房间 {room.room_number} 不属于房型 {room_class.name}")
        if not room.is_active:
            raise ValueError(f"房间 {room.room_number} 已停用")

        guests = (values.get("adults") or 0) + (values.get("children") or 0) + (values.get("infants") or 0)
        if guests > room_class.max_occupancy:
            raise ValueError(f"入住人数 {guests} 超过房型最大入住人数 {room_class.max_occupancy}")

        self._check_room_free(room.id, check_in, check_out, exclude_id=exclude_id)

        source = None
        if values.get("booking_source_id"):
            source = self.db.query(BookingSource).filter(
                BookingSource.id == values["booking_source_id"]
            ).first()
            if not source:
                raise ValueError("预订渠道不存在")

        discount_type = values.get("discount_type")
        discount_value = values.get("discount_value") or 0
        promo_code = values.get("promo_code")
        if promo_code:
            promo = self.promo_service.validate(promo_code, room_class, check_in)
            promo_code = promo.promocode
            discount_type = DiscountType.PERCENTAGE
            discount_value = promo.discount

        commission_percent = values.get("commission_percent")
        if commission_percent is None:
            commission_percent = source.commission_rate if source else 0

        billing_type = values.get("billing_type") or BillingType.NIGHT_STAY
        quote = pricing.quote(
            room_class, billing_type, check_in, check_out,
            adults=values.get("adults") or 1,
            children=values.get("children") or 0,
            hours=self._billable_hours(values),
            discount_type=discount_type,
            discount_value=discount_value,
            service_charge=values.get("service_charge") or 0,
            tax=values.get("tax") or 0,
            commission_percent=commission_percent,
            advance=values.get("advance_amount") or 0,
        )

        return {
            "number_of_nights": quote["number_of_nights"],
            "base_room_rate": quote["base_room_rate"],
            "total_room_charge": quote["total_room_charge"],
            "extra_charges": quote["extra_charges"],
            "discount_type": discount_type,
            "discount_value": pricing.money(discount_value),
            "discount_amount": quote["discount_amount"],
            "promo_code": promo_code,
            "service_charge": quote["service_charge"],
            "tax": quote["tax"],
            "commission_percent": pricing.money(commission_percent),
            "commission_amount": quote["commission_amount"],
            "total_amount": quote["total_amount"],
            "advance_amount": quote["advance_amount"],
            "balance_amount": quote["balance_amount"],
            "payment_status": quote["payment_status"],
        }

    @staticmethod
    def _billable_hours(values: dict) -> int:
        """钟点房计费小时数：入住与离店时间之差，向上取整"""
        if values.get("billing_type") != BillingType.HOURLY:
            return 1
        start = datetime.combine(values["check_in_date"],
                                 time.fromisoformat(values.get("check_in_time") or "14:00"))
        end = datetime.combine(values["check_out_date"],
                               time.fromisoformat(values.get("check_out_time") or "12:00"))
        return max(1, math.ceil((end - start).total_seconds() / 3600))

    def create_reservation(self, data: ReservationCreate, booked_by: Optional[int] = None) -> Reservation:
        """创建预订（金额由服务端计算）"""
        customer = self.db.query(Customer).filter(Customer.id == data.customer_id).first()
        if not customer:
            raise ValueError("客人不存在")

        values = data.model_dump()
        if "commission_percent" not in data.model_fields_set:
            values["commission_percent"] = None
        computed = self._validate_and_price(values, customer)

        reservation = Reservation(
            booking_number=self._generate_booking_number(),
            customer_id=customer.id,
            room_id=data.room_id,
            room_class_id=data.room_class_id,
            booking_source_id=data.booking_source_id,
            check_in_date=data.check_in_date,
            check_out_date=data.check_out_date,
            check_in_time=data.check_in_time,
            check_out_time=data.check_out_time,
            adults=data.adults,
            children=data.children,
            infants=data.infants,
            booking_type=data.booking_type,
            purpose_of_visit=data.purpose_of_visit,
            arrival_from=data.arrival_from,
            special_requests=data.special_requests,
            remarks=data.remarks,
            billing_type=data.billing_type,
            discount_reason=data.discount_reason,
            payment_method=data.payment_method,
            reservation_status=ReservationStatus.CONFIRMED,
            booked_by=booked_by,
            **computed
        )
        self.db.add(reservation)
        self.db.flush()

        if computed["advance_amount"] > 0:
            self.db.add(Payment(
                reservation_id=reservation.id,
                customer_id=customer.id,
                amount=computed["advance_amount"],
                payment_method=data.payment_method,
                payment_type=PaymentType.ADVANCE_PAYMENT,
                remarks=data.advance_remarks or "Advance payment at booking",
            ))

        self.db.commit()
        self.db.refresh(reservation)
        logger.info("Reservation %s created for customer %s, room %s, total %s",
                    reservation.booking_number, customer.customer_code,
                    reservation.room.room_number, reservation.total_amount)
        return reservation

    def update_reservation(self, reservation_id: int, data: ReservationUpdate) -> Reservation:
        """修改预订（仅 CONFIRMED 状态），重新校验并计价"""
        reservation = self.get_reservation(reservation_id)
        if not reservation:
            raise NotFoundError("预订不存在")
        if reservation.reservation_status != ReservationStatus.CONFIRMED:
            raise ValueError(f"只有已确认的预订可以修改，当前状态: {reservation.reservation_status.value}")

        update_data = data.model_dump(exclude_unset=True)
        nullable = ("promo_code", "discount_type", "booking_source_id")

        values = {field: getattr(reservation, field) for field in _PRICING_FIELDS}
        for key, value in update_data.items():
            if key in _PRICING_FIELDS and (value is not None or key in nullable):
                values[key] = value
        values["advance_amount"] = reservation.advance_amount or 0

        # 清除促销码时一并清除其带来的折扣
        if "promo_code" in update_data and not update_data["promo_code"] \
                and reservation.promo_code and "discount_type" not in update_data:
            values["discount_type"] = None
            values["discount_value"] = 0

        # 更换渠道且未指定佣金时按新渠道佣金率计算
        if "booking_source_id" in update_data and "commission_percent" not in update_data:
            values["commission_percent"] = None

        # 未修改促销码时沿用已保存的折扣，不重新校验有效期
        keep_promo = "promo_code" not in update_data and reservation.promo_code
        if keep_promo:
            values["promo_code"] = None

        computed = self._validate_and_price(values, reservation.customer, exclude_id=reservation.id)
        if keep_promo:
            computed["promo_code"] = reservation.promo_code

        for key in _PRICING_FIELDS:
            if key not in computed:
                setattr(reservation, key, values[key])
        for key in ("booking_type", "purpose_of_visit", "arrival_from", "special_requests",
                    "remarks", "discount_reason"):
            if key in update_data:
                setattr(reservation, key, update_data[key])
        if update_data.get("payment_method") is not None:
            reservation.payment_method = update_data["payment_method"]
        for key, value in computed.items():
            setattr(reservation, key, value)

        self.db.commit()
        self.db.refresh(reservation)
        logger.info("Reservation %s updated, total %s", reservation.booking_number, reservation.total_amount)
        return reservation

    def cancel_reservation(self, reservation_id: int, reason: str) -> Reservation:
        """取消预订：必须填写原因；已入住的取消会释放房间"""
        if not reason or not reason.strip():
            raise ValueError("取消原因不能为空")

        reservation = self.get_reservation(reservation_id)
        if not reservation:
            raise NotFoundError("预订不存在")

        if reservation.reservation_status == ReservationStatus.CANCELLED:
            raise ValueError("预订已取消")
        if reservation.reservation_status == ReservationStatus.CHECKED_OUT:
            raise ValueError("已退房的预订无法取消")

        if reservation.reservation_status == ReservationStatus.CHECKED_IN:
            reservation.room.status = RoomStatus.AVAILABLE

        reservation.reservation_status = ReservationStatus.CANCELLED
        reservation.cancellation_reason = reason.strip()
        reservation.cancellation_date = datetime.now()

        self.db.commit()
        self.db.refresh(reservation)
        logger.info("Reservation %s cancelled: %s", reservation.booking_number, reservation.cancellation_reason)
        return reservation

    # ============== 入住 ==============

    def _require(self, reservation_id: int) -> Reservation:
        reservation = self.get_reservation(reservation_id)
        if not reservation:
            raise NotFoundError("预订不存在")
        return reservation

    def get_check_in_preview(self, reservation_id: int, now: Optional[datetime] = None) -> dict:
        """入住预览：早到/迟到标记与费用"""
        reservation = self._require(reservation_id)
        if reservation.reservation_status != ReservationStatus.CONFIRMED:
            raise ValueError(f"预订状态为 {reservation.reservation_status.value}，无法办理入住")
        if reservation.room.status != RoomStatus.AVAILABLE:
            raise ValueError(
                f"房间 {reservation.room.room_number} 不可用 (状态: {reservation.room.status.value})"
            )

        now = now or datetime.now()
        fees = pricing.check_in_fees(reservation.check_in_date, now)
        return {
            "reservation": self.get_reservation_detail(reservation),
            "can_check_in": reservation.can_check_in,
            **fees,
            "current_time": now,
        }

    def process_check_in(self, reservation_id: int, data: CheckInRequest,
                         now: Optional[datetime] = None) -> dict:
        """办理入住"""
        reservation = self._require(reservation_id)
        if not reservation.can_check_in:
            if reservation.reservation_status != ReservationStatus.CONFIRMED:
                raise ValueError(f"预订状态为 {reservation.reservation_status.value}，无法办理入住")
            raise ValueError(f"入住日期为 {reservation.check_in_date}，尚不能办理入住")
        if not data.guest_confirmation or not data.identity_verified:
            raise ValueError("请先确认客人信息并核验证件")
        if reservation.room.status != RoomStatus.AVAILABLE:
            raise ValueError(
                f"房间 {reservation.room.room_number} 不可用 (状态: {reservation.room.status.value})"
            )

        now = now or datetime.now()
        fees = pricing.money(data.early_check_in_fee) + pricing.money(data.late_check_in_fee) \
            + pricing.money(data.additional_charges)
        payment = pricing.money(data.payment_amount)

        total = pricing.money(reservation.total_amount) + fees
        advance = pricing.money(reservation.advance_amount)
        balance = max(Decimal("0.00"), total - advance - payment)

        reservation.extra_charges = pricing.money(reservation.extra_charges) + fees
        reservation.total_amount = total
        reservation.balance_amount = balance

        if payment > 0:
            reservation.advance_amount = advance + payment
            reservation.payment_status = pricing.payment_status(total, advance + payment)
            self.db.add(Payment(
                reservation_id=reservation.id,
                customer_id=reservation.customer_id,
                amount=payment,
                payment_method=data.payment_method,
                payment_type=PaymentType.CHECKIN_PAYMENT,
                remarks=data.payment_remarks or "Payment at check-in",
            ))

        if data.staff_notes and data.staff_notes.strip():
            note = f"Check-in Notes: {data.staff_notes.strip()}"
            reservation.remarks = f"{reservation.remarks}\n{note}" if reservation.remarks else note

        reservation.room.status = RoomStatus.OCCUPIED
        reservation.reservation_status = ReservationStatus.CHECKED_IN
        reservation.actual_check_in = now

        self.db.commit()
        self.db.refresh(reservation)
        logger.info("Reservation %s checked in to room %s, balance %s",
                    reservation.booking_number, reservation.room.room_number, balance)

        return {
            "reservation_id": reservation.id,
            "booking_number": reservation.booking_number,
            "room_number": reservation.room.room_number,
            "actual_check_in": now,
            "early_check_in_fee": pricing.money(data.early_check_in_fee),
            "late_check_in_fee": pricing.money(data.late_check_in_fee),
            "additional_charges": pricing.money(data.additional_charges),
            "payment_amount": payment,
            "total_amount": total,
            "advance_amount": reservation.advance_amount,
            "balance_amount": balance,
            "payment_status": reservation.payment_status,
        }

    # ============== 退房 ==============

    def get_check_out_preview(self, reservation_id: int, now: Optional[datetime] = None) -> dict:
        """退房预览：延迟退房费、实际入住天数、最终余额"""
        reservation = self._require(reservation_id)
        if not reservation.can_check_out:
            raise ValueError(f"预订状态为 {reservation.reservation_status.value}，无法办理退房")

        now = now or datetime.now()
        late_fee = pricing.late_checkout_fee(reservation.check_out_date, now)
        updated_total = pricing.money(reservation.total_amount) + late_fee
        return {
            "reservation": self.get_reservation_detail(reservation),
            "late_checkout_fee": late_fee,
            "actual_stay_days": pricing.actual_stay_days(reservation.check_in_date, now),
            "updated_total_amount": updated_total,
            "final_balance_amount": max(
                Decimal("0.00"), updated_total - pricing.money(reservation.advance_amount)
            ),
            "current_time": now,
        }

    def process_check_out(self, reservation_id: int, data: CheckOutRequest,
                          now: Optional[datetime] = None) -> dict:
        """办理退房"""
        reservation = self._require(reservation_id)
        if not reservation.can_check_out:
            raise ValueError(f"预订状态为 {reservation.reservation_status.value}，无法办理退房")

        now = now or datetime.now()
        charges = pricing.money(data.additional_charges) + pricing.money(data.late_checkout_fee) \
            + pricing.money(data.damage_fee)
        payment = pricing.money(data.payment_amount)

        final_total = pricing.money(reservation.total_amount) + charges
        advance = pricing.money(reservation.advance_amount)
        balance = max(Decimal("0.00"), final_total - advance - payment)

        reservation.extra_charges = pricing.money(reservation.extra_charges) + charges
        reservation.total_amount = final_total
        reservation.balance_amount = balance

        if payment > 0:
            reservation.advance_amount = advance + payment
            self.db.add(Payment(
                reservation_id=reservation.id,
                customer_id=reservation.customer_id,
                amount=payment,
                payment_method=data.payment_method,
                payment_type=PaymentType.CHECKOUT_PAYMENT,
                remarks=data.payment_remarks or "Payment at check-out",
            ))
        reservation.payment_status = pricing.payment_status(final_total, reservation.advance_amount)

        notes = []
        if data.staff_notes and data.staff_notes.strip():
            notes.append(data.staff_notes.strip())
        if data.damage_fee and data.damage_description:
            notes.append(f"Damage: {data.damage_description}")
        if notes:
            note = f"Checkout Notes: {'; '.join(notes)}"
            reservation.remarks = f"{reservation.remarks}\n{note}" if reservation.remarks else note

        reservation.room.status = RoomStatus.AVAILABLE
        reservation.reservation_status = ReservationStatus.CHECKED_OUT
        reservation.actual_check_out = now

        self.db.commit()
        self.db.refresh(reservation)
        logger.info("Reservation %s checked out of room %s, balance %s",
                    reservation.booking_number, reservation.room.room_number, balance)

        return {
            "reservation_id": reservation.id,
            "booking_number": reservation.booking_number,
            "room_number": reservation.room.room_number,
            "actual_check_out": now,
            "additional_charges": pricing.money(data.additional_charges),
            "late_checkout_fee": pricing.money(data.late_checkout_fee),
            "damage_fee": pricing.money(data.damage_fee),
            "payment_amount": payment,
            "final_total_amount": final_total,
            "advance_amount": reservation.advance_amount,
            "balance_amount": balance,
            "payment_status": reservation.payment_status,
        }

    # ============== 账单 / 日历 ==============

    def get_invoice(self, reservation_id: int) -> dict:
        """账单明细"""
        r = self._require(reservation_id)

        total_room_charge = pricing.money(r.total_room_charge)
        discount = pricing.money(r.discount_amount)
        service = pricing.money(r.service_charge)
        tax = pricing.money(r.tax)
        commission = pricing.money(r.commission_amount)
        total = pricing.money(r.total_amount)
        front_desk_charges = total - (total_room_charge - discount + service + tax + commission)

        units = r.number_of_nights if r.billing_type == BillingType.NIGHT_STAY else 1
        items = [
            {"description": f"Room {r.room.room_number} ({r.room_class.name}) - {r.billing_type.value}",
             "quantity": units, "unit_price": pricing.money(r.base_room_rate),
             "amount": total_room_charge},
        ]
        if discount > 0:
            label = f"Discount ({r.promo_code})" if r.promo_code else "Discount"
            items.append({"description": label, "quantity": 1, "unit_price": -discount, "amount": -discount})
        for label, amount in (("Service charge", service), ("Tax", tax), ("Commission", commission),
                              ("Additional charges", front_desk_charges)):
            if amount > 0:
                items.append({"description": label, "quantity": 1, "unit_price": amount, "amount": amount})

        paid = sum((pricing.money(p.amount) for p in r.payments), Decimal("0.00"))
        return {
            "invoice_number": f"INV-{r.booking_number}",
            "issued_at": datetime.now(),
            "booking_number": r.booking_number,
            "customer_name": r.customer.full_name,
            "customer_email": r.customer.email,
            "customer_phone": r.customer.phone,
            "room_number": r.room.room_number,
            "room_class_name": r.room_class.name,
            "check_in_date": r.check_in_date,
            "check_out_date": r.check_out_date,
            "number_of_nights": r.number_of_nights,
            "reservation_status": r.reservation_status,
            "items": items,
            "total_amount": total,
            "paid_amount": paid,
            "balance_amount": pricing.money(r.balance_amount),
            "payment_status": r.payment_status,
            "payments": [
                {"date": p.created_at, "type": p.payment_type, "method": p.payment_method,
                 "amount": pricing.money(p.amount)}
                for p in r.payments
            ],
        }

    def get_calendar(self, start: date, end: date) -> dict:
        """房态日历：与 [start, end] 有交集的未取消预订，按房间分组"""
        if end < start:
            raise ValueError("结束日期不能早于开始日期")

        reservations = self.db.query(Reservation).join(Room, Reservation.room_id == Room.id).filter(
            Reservation.reservation_status != ReservationStatus.CANCELLED,
            Reservation.check_in_date <= end,
            Reservation.check_out_date >= start,
        ).order_by(Room.room_number, Reservation.check_in_date).all()

        rooms = {}
        for r in reservations:
            entry = rooms.setdefault(r.room.room_number, {
                "room_id": r.room_id,
                "room_number": r.room.room_number,
                "room_class_name": r.room_class.name,
                "reservations": [],
            })
            entry["reservations"].append({
                "id": r.id,
                "booking_number": r.booking_number,
                "customer_name": r.customer.full_name,
                "check_in_date": r.check_in_date,
                "check_out_date": r.check_out_date,
                "reservation_status": r.reservation_status,
                "guest_count": r.guest_count,
            })

        return {"start": start, "end": end, "rooms": list(rooms.values())}
