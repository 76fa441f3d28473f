"""
业务对象定义
酒店运营后台的所有实体：楼层、房型、房间、客人、预订、预订渠道、促销码、人事
"""
from datetime import datetime, date
from enum import Enum
from typing import List
from sqlalchemy import (
    Column, Integer, String, DateTime, Date,
    ForeignKey, Text, Enum as SQLEnum, Boolean, Numeric, UniqueConstraint
)
from sqlalchemy.orm import relationship
from hotel_admin.database import Base


# ============== 枚举定义 ==============

class RoomStatus(str, Enum):
    """房间状态枚举"""
    AVAILABLE = "AVAILABLE"          # 可用
    OCCUPIED = "OCCUPIED"            # 入住中
    RESERVED = "RESERVED"            # 已预留
    CLEANING = "CLEANING"            # 清洁中
    MAINTENANCE = "MAINTENANCE"      # 维护中
    OUT_OF_ORDER = "OUT_OF_ORDER"    # 停用


class ReservationStatus(str, Enum):
    """预订状态枚举"""
    CONFIRMED = "CONFIRMED"      # 已确认
    CHECKED_IN = "CHECKED_IN"    # 已入住
    CHECKED_OUT = "CHECKED_OUT"  # 已退房
    CANCELLED = "CANCELLED"      # 已取消


class BillingType(str, Enum):
    """计费方式"""
    NIGHT_STAY = "NIGHT_STAY"    # 按晚
    DAY_USE = "DAY_USE"          # 日用房
    HOURLY = "HOURLY"            # 钟点房


class DiscountType(str, Enum):
    """折扣方式"""
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class PaymentMethod(str, Enum):
    """支付方式"""
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    MOBILE_PAYMENT = "MOBILE_PAYMENT"
    ONLINE = "ONLINE"


class PaymentStatus(str, Enum):
    """付款状态"""
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class PaymentType(str, Enum):
    """付款类型"""
    ADVANCE_PAYMENT = "ADVANCE_PAYMENT"
    CHECKIN_PAYMENT = "CHECKIN_PAYMENT"
    CHECKOUT_PAYMENT = "CHECKOUT_PAYMENT"


class PromoCodeStatus(str, Enum):
    """促销码状态"""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class EmployeeRole(str, Enum):
    """员工角色"""
    ADMIN = "ADMIN"                  # 系统管理员
    MANAGER = "MANAGER"              # 经理
    RECEPTIONIST = "RECEPTIONIST"    # 前台
    HR_MANAGER = "HR_MANAGER"        # 人事


class AttendanceStatus(str, Enum):
    """考勤状态"""
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    LEAVE = "LEAVE"


class LeaveStatus(str, Enum):
    """请假状态"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# ============== 楼层 ==============

class Floor(Base):
    """楼层对象"""
    __tablename__ = "floors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)                      # 楼层名称
    floor_number = Column(Integer, unique=True, nullable=False)    # 楼层号
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    # 链接
    rooms = relationship("Room", back_populates="floor")
    plans = relationship("FloorPlan", back_populates="floor")


class FloorPlan(Base):
    """
    楼层平面规划
    记录某楼层的房间数量与起始房号
    """
    __tablename__ = "floor_plans"

    id = Column(Integer, primary_key=True, index=True)
    floor_id = Column(Integer, ForeignKey("floors.id"), nullable=True)
    floor_name = Column(String(50), nullable=False)
    no_of_room = Column(Integer, nullable=False)       # 房间数
    start_room_no = Column(Integer, nullable=False)    # 起始房号
    created_at = Column(DateTime, default=datetime.utcnow)

    floor = relationship("Floor", back_populates="plans")

    @property
    def room_numbers(self) -> List[int]:
        """按起始房号展开的房号列表"""
        return [self.start_room_no + i for i in range(self.no_of_room or 0)]


# ============== 房型 / 房间 ==============

class RoomClass(Base):
    """
    房型对象
    定义价格与入住人数限制，与具体房间无关
    """
    __tablename__ = "room_classes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(Text)
    rate_per_night = Column(Numeric(10, 2), nullable=False)     # 每晚价格
    rate_day_use = Column(Numeric(10, 2), nullable=False)       # 日用房价格
    hourly_rate = Column(Numeric(10, 2))                        # 钟点价格
    extra_person_charge = Column(Numeric(10, 2), default=0)     # 加人费用
    child_charge = Column(Numeric(10, 2), default=0)            # 儿童费用
    max_occupancy = Column(Integer, nullable=False, default=2)
    standard_occupancy = Column(Integer, nullable=False, default=2)
    room_size = Column(String(50))
    bed_configuration = Column(String(100))
    cleaning_frequency_days = Column(Integer, default=1)
    amenities = Column(Text)                                    # JSON 列表
    special_features = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rooms = relationship("Room", back_populates="room_class")


class Room(Base):
    """房间对象"""
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(10), unique=True, nullable=False)
    floor_id = Column(Integer, ForeignKey("floors.id"), nullable=False)
    room_class_id = Column(Integer, ForeignKey("room_classes.id"), nullable=False)
    status = Column(SQLEnum(RoomStatus), default=RoomStatus.AVAILABLE)
    has_balcony = Column(Boolean, default=False)
    has_sea_view = Column(Boolean, default=False)
    has_kitchenette = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    last_cleaned = Column(DateTime)
    next_cleaning_due = Column(DateTime)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    floor = relationship("Floor", back_populates="rooms")
    room_class = relationship("RoomClass", back_populates="rooms")
    reservations = relationship("Reservation", back_populates="room")


# ============== 客人 ==============

class Customer(Base):
    """
    客人对象
    identity_number / email 唯一，删除为软删除 (is_active)
    """
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    customer_code = Column(String(20), unique=True, nullable=False)   # CUST-0001
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100))
    email = Column(String(100), unique=True, nullable=False)
    phone = Column(String(30), nullable=False)
    identity_type = Column(String(20), default="NIC")
    identity_number = Column(String(50), unique=True, nullable=False)
    nationality = Column(String(20), nullable=False)                  # native / foreigner
    address = Column(Text)
    city = Column(String(100))
    country = Column(String(100))
    is_vip = Column(Boolean, default=False)
    vip_level = Column(String(20))
    is_active = Column(Boolean, default=True)
    is_banned = Column(Boolean, default=False)
    ban_reason = Column(Text)
    special_requests = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    reservations = relationship("Reservation", back_populates="customer")
    payments = relationship("Payment", back_populates="customer")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


# ============== 预订渠道 / 促销码 ==============

class BookingType(Base):
    """预订类型（如 Walk-in、Online、Corporate）"""
    __tablename__ = "booking_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    sources = relationship("BookingSource", back_populates="booking_type")


class BookingSource(Base):
    """
    预订渠道
    每个渠道带佣金比例和往来账款
    """
    __tablename__ = "booking_sources"

    id = Column(Integer, primary_key=True, index=True)
    booking_type_id = Column(Integer, ForeignKey("booking_types.id"), nullable=False)
    booking_source = Column(String(100), nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False, default=0)
    total_balance = Column(Numeric(10, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(10, 2), nullable=False, default=0)
    due_amount = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    booking_type = relationship("BookingType", back_populates="sources")
    reservations = relationship("Reservation", back_populates="booking_source")


class PromoCode(Base):
    """促销码"""
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True, index=True)
    promocode = Column(String(30), unique=True, nullable=False)
    room_type = Column(String(50), nullable=False, default="ALL")   # 房型名称或 ALL
    from_date = Column(Date, nullable=False)
    to_date = Column(Date, nullable=False)
    discount = Column(Numeric(5, 2), nullable=False)                # 百分比
    status = Column(SQLEnum(PromoCodeStatus), default=PromoCodeStatus.ACTIVE)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ============== 预订 ==============

class Reservation(Base):
    """
    预订对象
    关联客人、房间与入住日期，记录状态与财务合计
    """
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    booking_number = Column(String(30), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    room_class_id = Column(Integer, ForeignKey("room_classes.id"), nullable=False)
    booking_source_id = Column(Integer, ForeignKey("booking_sources.id"), nullable=True)

    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    check_in_time = Column(String(5), default="14:00")
    check_out_time = Column(String(5), default="12:00")
    number_of_nights = Column(Integer, nullable=False, default=1)
    adults = Column(Integer, default=1)
    children = Column(Integer, default=0)
    infants = Column(Integer, default=0)

    booking_type = Column(String(50))
    purpose_of_visit = Column(String(100))
    arrival_from = Column(String(100))
    special_requests = Column(Text)
    remarks = Column(Text)

    # 财务
    billing_type = Column(SQLEnum(BillingType), default=BillingType.NIGHT_STAY)
    base_room_rate = Column(Numeric(10, 2), default=0)
    total_room_charge = Column(Numeric(10, 2), default=0)
    extra_charges = Column(Numeric(10, 2), default=0)
    discount_type = Column(SQLEnum(DiscountType), nullable=True)
    discount_value = Column(Numeric(10, 2), default=0)
    discount_reason = Column(Text)
    discount_amount = Column(Numeric(10, 2), default=0)
    promo_code = Column(String(30))
    service_charge = Column(Numeric(10, 2), default=0)
    tax = Column(Numeric(10, 2), default=0)
    commission_percent = Column(Numeric(5, 2), default=0)
    commission_amount = Column(Numeric(10, 2), default=0)
    total_amount = Column(Numeric(10, 2), default=0)
    advance_amount = Column(Numeric(10, 2), default=0)
    balance_amount = Column(Numeric(10, 2), default=0)
    payment_method = Column(SQLEnum(PaymentMethod), nullable=False)
    payment_status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.PENDING)

    # 生命周期
    reservation_status = Column(SQLEnum(ReservationStatus), default=ReservationStatus.CONFIRMED)
    actual_check_in = Column(DateTime)
    actual_check_out = Column(DateTime)
    cancellation_reason = Column(Text)
    cancellation_date = Column(DateTime)

    booked_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="reservations")
    room = relationship("Room", back_populates="reservations")
    room_class = relationship("RoomClass")
    booking_source = relationship("BookingSource", back_populates="reservations")
    booked_by_staff = relationship("Employee", foreign_keys=[booked_by])
    payments = relationship("Payment", back_populates="reservation",
                            order_by="Payment.created_at")

    @property
    def guest_count(self) -> int:
        return (self.adults or 0) + (self.children or 0) + (self.infants or 0)

    @property
    def can_check_in(self) -> bool:
        return (
            self.reservation_status == ReservationStatus.CONFIRMED
            and date.today() >= self.check_in_date
        )

    @property
    def can_check_out(self) -> bool:
        return self.reservation_status == ReservationStatus.CHECKED_IN


class Payment(Base):
    """付款记录"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(SQLEnum(PaymentMethod), nullable=False)
    payment_type = Column(SQLEnum(PaymentType), nullable=False)
    remarks = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    reservation = relationship("Reservation", back_populates="payments")
    customer = relationship("Customer", back_populates="payments")


# ============== 人事 ==============

class Department(Base):
    """部门"""
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    staff = relationship("Employee", back_populates="department")


class StaffClass(Base):
    """员工类别，决定年假额度"""
    __tablename__ = "staff_classes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    max_leaves_per_year = Column(Integer, nullable=False, default=14)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    staff = relationship("Employee", back_populates="staff_class")


class Employee(Base):
    """
    员工对象
    同时是后台登录账号
    """
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    email = Column(String(100))
    phone = Column(String(30))
    role = Column(SQLEnum(EmployeeRole), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    staff_class_id = Column(Integer, ForeignKey("staff_classes.id"), nullable=True)
    join_date = Column(Date, default=date.today)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    department = relationship("Department", back_populates="staff")
    staff_class = relationship("StaffClass", back_populates="staff")
    attendance = relationship("Attendance", back_populates="employee")
    leaves = relationship("Leave", back_populates="employee", foreign_keys="Leave.employee_id")


class Attendance(Base):
    """考勤记录，每人每天一条"""
    __tablename__ = "attendance"
    __table_args__ = (UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(SQLEnum(AttendanceStatus), nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    employee = relationship("Employee", back_populates="attendance")


class Leave(Base):
    """请假记录"""
    __tablename__ = "leaves"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    status = Column(SQLEnum(LeaveStatus), default=LeaveStatus.PENDING)
    reason = Column(Text)
    applied_at = Column(DateTime, default=datetime.utcnow)
    decided_at = Column(DateTime)
    decided_by = Column(Integer, ForeignKey("employees.id"), nullable=True)

    employee = relationship("Employee", back_populates="leaves", foreign_keys=[employee_id])
