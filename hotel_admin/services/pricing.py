"""
价格计算 - 预订财务合计
房费、折扣、服务费、税、佣金、预付款与余额；前台的早到/迟到/延迟退房费用
"""
import math
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple
from hotel_admin.config import settings
from hotel_admin.models.ontology import BillingType, DiscountType, PaymentStatus, RoomClass

TWO_PLACES = Decimal("0.01")


def money(value) -> Decimal:
    """统一为两位小数的 Decimal"""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def number_of_nights(check_in: date, check_out: date) -> int:
    """入住晚数，至少 1 晚"""
    return max(1, (check_out - check_in).days)


def room_charge(room_class: RoomClass, billing_type: BillingType, nights: int,
                hours: int = 1, adults: int = 1, children: int = 0) -> Tuple[Decimal, Decimal, Decimal]:
    """
    计算房费

    Returns:
        (基础房价, 总房费(含加人费用), 加人费用)
    """
    if billing_type == BillingType.DAY_USE:
        base_rate = money(room_class.rate_day_use)
        base_total = base_rate
    elif billing_type == BillingType.HOURLY:
        base_rate = money(room_class.hourly_rate or room_class.rate_per_night)
        base_total = base_rate * max(1, hours)
    else:
        base_rate = money(room_class.rate_per_night)
        base_total = base_rate * max(1, nights)

    extra_adults = max(0, adults - (room_class.standard_occupancy or 0))
    extra_charges = (
        extra_adults * money(room_class.extra_person_charge)
        + children * money(room_class.child_charge)
    )
    return base_rate, money(base_total + extra_charges), money(extra_charges)


def discount_amount(discount_type: Optional[DiscountType], value, base) -> Decimal:
    """折扣金额，固定金额折扣不超过基数"""
    value = money(value)
    base = money(base)
    if discount_type == DiscountType.PERCENTAGE:
        return money(base * value / 100)
    if discount_type == DiscountType.FIXED_AMOUNT:
        return min(value, base)
    return Decimal("0.00")


def payment_status(total, advance) -> PaymentStatus:
    """根据预付款判断付款状态"""
    total = money(total)
    advance = money(advance)
    if advance >= total:
        return PaymentStatus.PAID
    if advance > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


def quote(room_class: RoomClass, billing_type: BillingType, check_in: date, check_out: date,
          adults: int = 1, children: int = 0, hours: int = 1,
          discount_type: Optional[DiscountType] = None, discount_value=0,
          service_charge=0, tax=0, commission_percent=0, advance=0) -> dict:
    """计算一张预订的全部金额"""
    nights = number_of_nights(check_in, check_out)
    base_rate, total_room_charge, extra_charges = room_charge(
        room_class, billing_type, nights, hours, adults, children
    )
    discount = discount_amount(discount_type, discount_value, total_room_charge)
    subtotal = total_room_charge - discount
    commission = money(total_room_charge * money(commission_percent) / 100)
    total = money(subtotal + money(service_charge) + money(tax) + commission)
    advance = money(advance)

    return {
        "number_of_nights": nights,
        "base_room_rate": base_rate,
        "total_room_charge": total_room_charge,
        "extra_charges": extra_charges,
        "discount_amount": discount,
        "subtotal": money(subtotal),
        "service_charge": money(service_charge),
        "tax": money(tax),
        "commission_amount": commission,
        "total_amount": total,
        "advance_amount": advance,
        "balance_amount": max(Decimal("0.00"), total - advance),
        "payment_status": payment_status(total, advance),
    }


def _standard_check_in(check_in_date: date) -> datetime:
    hour, minute = (int(p) for p in settings.STANDARD_CHECKIN_TIME.split(":"))
    return datetime.combine(check_in_date, time(hour, minute))


def check_in_fees(check_in_date: date, now: datetime) -> dict:
    """
    入住时的早到/迟到费用

    早于标准入住时间按小时收费；晚于 1 天以上按天收费（首日不计）
    """
    anchor = _standard_check_in(check_in_date)
    delta_seconds = (now - anchor).total_seconds()

    is_early = delta_seconds < 0
    is_late = delta_seconds > 24 * 3600

    early_fee = Decimal("0.00")
    late_fee = Decimal("0.00")
    if is_early:
        hours_early = math.ceil(-delta_seconds / 3600)
        early_fee = money(hours_early * settings.EARLY_CHECKIN_FEE_PER_HOUR)
    if is_late:
        days_late = math.ceil(delta_seconds / (24 * 3600)) - 1
        late_fee = money(days_late * settings.LATE_CHECKIN_FEE_PER_DAY)

    return {
        "is_early_check_in": is_early,
        "is_late_check_in": is_late,
        "early_check_in_fee": early_fee,
        "late_check_in_fee": late_fee,
    }


def late_checkout_fee(check_out_date: date, now: datetime) -> Decimal:
    """超过退房日 12:00 后每个起算小时收费"""
    anchor = datetime.combine(check_out_date, time(settings.STANDARD_CHECKOUT_HOUR, 0))
    if now <= anchor:
        return Decimal("0.00")
    hours = math.ceil((now - anchor).total_seconds() / 3600)
    return money(hours * settings.LATE_CHECKOUT_FEE_PER_HOUR)


def actual_stay_days(check_in_date: date, now: datetime) -> int:
    """实际入住天数（不足一天按一天）"""
    seconds = (now - datetime.combine(check_in_date, time.min)).total_seconds()
    return max(1, math.ceil(seconds / (24 * 3600)))
