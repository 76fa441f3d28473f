"""
价格计算单元测试
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from hotel_admin.models.ontology import BillingType, DiscountType, PaymentStatus, RoomClass
from hotel_admin.services import pricing


@pytest.fixture
def room_class():
    return RoomClass(
        name="Deluxe",
        rate_per_night=Decimal("10000"),
        rate_day_use=Decimal("6000"),
        hourly_rate=Decimal("1500"),
        extra_person_charge=Decimal("2000"),
        child_charge=Decimal("1000"),
        max_occupancy=4,
        standard_occupancy=2,
    )


class TestNights:
    """晚数计算测试"""

    def test_number_of_nights(self):
        assert pricing.number_of_nights(date(2025, 3, 1), date(2025, 3, 4)) == 3

    def test_same_day_counts_as_one_night(self):
        assert pricing.number_of_nights(date(2025, 3, 1), date(2025, 3, 1)) == 1


class TestRoomCharge:
    """房费计算测试"""

    def test_night_stay(self, room_class):
        base, total, extras = pricing.room_charge(room_class, BillingType.NIGHT_STAY, 3)
        assert base == Decimal("10000.00")
        assert total == Decimal("30000.00")
        assert extras == Decimal("0.00")

    def test_day_use_ignores_nights(self, room_class):
        base, total, _ = pricing.room_charge(room_class, BillingType.DAY_USE, 5)
        assert base == Decimal("6000.00")
        assert total == Decimal("6000.00")

    def test_hourly(self, room_class):
        _, total, _ = pricing.room_charge(room_class, BillingType.HOURLY, 1, hours=3)
        assert total == Decimal("4500.00")

    def test_hourly_falls_back_to_night_rate(self, room_class):
        room_class.hourly_rate = None
        base, total, _ = pricing.room_charge(room_class, BillingType.HOURLY, 1, hours=2)
        assert base == Decimal("10000.00")
        assert total == Decimal("20000.00")

    def test_extra_adults_and_children(self, room_class):
        """超出标准人数的成人和儿童另计"""
        _, total, extras = pricing.room_charge(
            room_class, BillingType.NIGHT_STAY, 2, adults=3, children=1
        )
        assert extras == Decimal("3000.00")
        assert total == Decimal("23000.00")


class TestDiscount:
    """折扣测试"""

    def test_percentage(self):
        assert pricing.discount_amount(DiscountType.PERCENTAGE, 10, 20000) == Decimal("2000.00")

    def test_fixed_amount_capped_at_base(self):
        assert pricing.discount_amount(DiscountType.FIXED_AMOUNT, 50000, 20000) == Decimal("20000.00")

    def test_no_discount_type(self):
        assert pricing.discount_amount(None, 10, 20000) == Decimal("0.00")


class TestPaymentStatus:
    """付款状态测试"""

    def test_paid(self):
        assert pricing.payment_status(100, 100) == PaymentStatus.PAID

    def test_partial(self):
        assert pricing.payment_status(100, 40) == PaymentStatus.PARTIAL

    def test_pending(self):
        assert pricing.payment_status(100, 0) == PaymentStatus.PENDING


class TestQuote:
    """完整报价测试"""

    def test_quote_totals(self, room_class):
        result = pricing.quote(
            room_class, BillingType.NIGHT_STAY, date(2025, 3, 1), date(2025, 3, 3),
            adults=2, discount_type=DiscountType.PERCENTAGE, discount_value=10,
            service_charge=500, tax=1000, commission_percent=15, advance=5000,
        )
        assert result["number_of_nights"] == 2
        assert result["total_room_charge"] == Decimal("20000.00")
        assert result["discount_amount"] == Decimal("2000.00")
        assert result["subtotal"] == Decimal("18000.00")
        assert result["commission_amount"] == Decimal("3000.00")
        # 18000 + 500 + 1000 + 3000
        assert result["total_amount"] == Decimal("22500.00")
        assert result["balance_amount"] == Decimal("17500.00")
        assert result["payment_status"] == PaymentStatus.PARTIAL

    def test_balance_never_negative(self, room_class):
        result = pricing.quote(
            room_class, BillingType.DAY_USE, date(2025, 3, 1), date(2025, 3, 2), advance=9999
        )
        assert result["balance_amount"] == Decimal("0.00")
        assert result["payment_status"] == PaymentStatus.PAID


class TestFrontDeskFees:
    """前台早到、迟到与延迟退房费用测试"""

    def test_early_check_in(self):
        fees = pricing.check_in_fees(date(2025, 3, 1), datetime(2025, 3, 1, 10, 30))
        assert fees["is_early_check_in"] is True
        assert fees["is_late_check_in"] is False
        # 10:30 到 14:00 为 3.5 小时，按 4 小时计
        assert fees["early_check_in_fee"] == Decimal("400.00")

    def test_on_time_check_in(self):
        fees = pricing.check_in_fees(date(2025, 3, 1), datetime(2025, 3, 1, 18, 0))
        assert fees["is_early_check_in"] is False
        assert fees["is_late_check_in"] is False
        assert fees["early_check_in_fee"] == Decimal("0.00")
        assert fees["late_check_in_fee"] == Decimal("0.00")

    def test_late_check_in(self):
        fees = pricing.check_in_fees(date(2025, 3, 1), datetime(2025, 3, 3, 15, 0))
        assert fees["is_late_check_in"] is True
        # 迟到 2 天 1 小时，按 3 天计，首日不收
        assert fees["late_check_in_fee"] == Decimal("1000.00")

    def test_late_checkout_fee(self):
        fee = pricing.late_checkout_fee(date(2025, 3, 3), datetime(2025, 3, 3, 14, 10))
        assert fee == Decimal("150.00")

    def test_no_late_checkout_fee_before_noon(self):
        assert pricing.late_checkout_fee(date(2025, 3, 3), datetime(2025, 3, 3, 11, 0)) == Decimal("0.00")

    def test_late_checkout_follows_configured_hour(self, monkeypatch):
        monkeypatch.setattr(pricing.settings, "STANDARD_CHECKOUT_HOUR", 11)
        fee = pricing.late_checkout_fee(date(2025, 3, 3), datetime(2025, 3, 3, 11, 30))
        assert fee == Decimal("50.00")

    def test_actual_stay_days(self):
        assert pricing.actual_stay_days(date(2025, 3, 1), datetime(2025, 3, 3, 10, 0)) == 3
        assert pricing.actual_stay_days(date(2025, 3, 1), datetime(2025, 3, 1, 15, 0)) == 1
