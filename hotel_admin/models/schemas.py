"""
Pydantic 模式定义
用于 API 请求/响应验证
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, ConfigDict
from hotel_admin.models.ontology import (
    RoomStatus, ReservationStatus, BillingType, DiscountType, PaymentMethod,
    PaymentStatus, PaymentType, PromoCodeStatus, EmployeeRole,
    AttendanceStatus, LeaveStatus
)


# ============== 认证 Schemas ==============

class LoginRequest(BaseModel):
    username: str
    password: str


class EmployeeResponse(BaseModel):
    id: int
    username: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: EmployeeRole
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    staff_class_id: Optional[int] = None
    staff_class_name: Optional[str] = None
    join_date: Optional[date] = None
    is_active: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    employee: EmployeeResponse


# ============== 楼层 Schemas ==============

class FloorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    floor_number: int
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("楼层名称不能为空")
        return v


class FloorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    floor_number: Optional[int] = None
    description: Optional[str] = None


class FloorResponse(BaseModel):
    id: int
    name: str
    floor_number: int
    description: Optional[str] = None
    room_count: int = 0
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class FloorPlanCreate(BaseModel):
    floor_name: str = Field(..., min_length=1, max_length=50)
    no_of_room: int = Field(..., ge=1)
    start_room_no: int = Field(..., ge=1)
    floor_id: Optional[int] = None


class FloorPlanUpdate(BaseModel):
    floor_name: Optional[str] = Field(None, min_length=1, max_length=50)
    no_of_room: Optional[int] = Field(None, ge=1)
    start_room_no: Optional[int] = Field(None, ge=1)
    floor_id: Optional[int] = None


class FloorPlanResponse(BaseModel):
    id: int
    floor_id: Optional[int] = None
    floor_name: str
    no_of_room: int
    start_room_no: int
    room_numbers: List[int]
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== 房型 Schemas ==============

class RoomClassBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    rate_per_night: Decimal = Field(..., gt=0)
    rate_day_use: Decimal = Field(..., gt=0)
    hourly_rate: Optional[Decimal] = Field(None, gt=0)
    extra_person_charge: Decimal = Field(default=0, ge=0)
    child_charge: Decimal = Field(default=0, ge=0)
    max_occupancy: int = Field(..., gt=0)
    standard_occupancy: int = Field(..., gt=0)
    room_size: Optional[str] = None
    bed_configuration: Optional[str] = None
    cleaning_frequency_days: int = Field(default=1, ge=1)
    amenities: List[str] = []
    special_features: Optional[str] = None
    is_active: bool = True


class RoomClassCreate(RoomClassBase):
    pass


class RoomClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    rate_per_night: Optional[Decimal] = Field(None, gt=0)
    rate_day_use: Optional[Decimal] = Field(None, gt=0)
    hourly_rate: Optional[Decimal] = Field(None, gt=0)
    extra_person_charge: Optional[Decimal] = Field(None, ge=0)
    child_charge: Optional[Decimal] = Field(None, ge=0)
    max_occupancy: Optional[int] = Field(None, gt=0)
    standard_occupancy: Optional[int] = Field(None, gt=0)
    room_size: Optional[str] = None
    bed_configuration: Optional[str] = None
    cleaning_frequency_days: Optional[int] = Field(None, ge=1)
    amenities: Optional[List[str]] = None
    special_features: Optional[str] = None
    is_active: Optional[bool] = None


class RoomClassResponse(RoomClassBase):
    id: int
    room_count: int = 0
    created_at: datetime
    updated_at: datetime


# ============== 房间 Schemas ==============

class RoomCreate(BaseModel):
    room_number: str = Field(..., min_length=1, max_length=10)
    floor_id: int
    room_class_id: int
    status: RoomStatus = RoomStatus.AVAILABLE
    has_balcony: bool = False
    has_sea_view: bool = False
    has_kitchenette: bool = False
    notes: Optional[str] = None


class RoomUpdate(BaseModel):
    room_number: Optional[str] = Field(None, min_length=1, max_length=10)
    floor_id: Optional[int] = None
    room_class_id: Optional[int] = None
    status: Optional[RoomStatus] = None
    has_balcony: Optional[bool] = None
    has_sea_view: Optional[bool] = None
    has_kitchenette: Optional[bool] = None
    is_active: Optional[bool] = None
    next_cleaning_due: Optional[datetime] = None
    notes: Optional[str] = None


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class RoomResponse(BaseModel):
    id: int
    room_number: str
    floor_id: int
    floor_name: Optional[str] = None
    floor_number: Optional[int] = None
    room_class_id: int
    room_class_name: Optional[str] = None
    rate_per_night: Optional[Decimal] = None
    max_occupancy: Optional[int] = None
    status: RoomStatus
    has_balcony: bool
    has_sea_view: bool
    has_kitchenette: bool
    is_active: bool
    last_cleaned: Optional[datetime] = None
    next_cleaning_due: Optional[datetime] = None
    notes: Optional[str] = None
    reservation_count: int = 0


# ============== 客人 Schemas ==============

class CustomerBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: str = Field(..., min_length=3, max_length=100)
    phone: str = Field(..., min_length=1, max_length=30)
    identity_type: str = Field(default="NIC", max_length=20)
    identity_number: str = Field(..., min_length=1, max_length=50)
    nationality: str = Field(..., pattern="^(native|foreigner)$")
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    is_vip: bool = False
    vip_level: Optional[str] = None
    special_requests: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("邮箱格式不正确")
        return v


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, min_length=3, max_length=100)
    phone: Optional[str] = Field(None, min_length=1, max_length=30)
    identity_type: Optional[str] = Field(None, max_length=20)
    identity_number: Optional[str] = Field(None, min_length=1, max_length=50)
    nationality: Optional[str] = Field(None, pattern="^(native|foreigner)$")
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    is_vip: Optional[bool] = None
    vip_level: Optional[str] = None
    special_requests: Optional[str] = None
    notes: Optional[str] = None


class CustomerResponse(CustomerBase):
    id: int
    customer_code: str
    full_name: str
    is_active: bool
    is_banned: bool
    ban_reason: Optional[str] = None
    reservation_count: int = 0
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CustomerBan(BaseModel):
    reason: str = ""


# ============== 预订渠道 Schemas ==============

class BookingTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)


class BookingTypeResponse(BaseModel):
    id: int
    name: str
    source_count: int = 0
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class BookingSourceCreate(BaseModel):
    booking_type_id: int
    booking_source: str = Field(..., min_length=1, max_length=100)
    commission_rate: Decimal = Field(..., ge=0, le=100)
    total_balance: Decimal = Field(..., ge=0)
    paid_amount: Decimal = Field(..., ge=0)
    due_amount: Optional[Decimal] = None


class BookingSourceUpdate(BaseModel):
    booking_type_id: Optional[int] = None
    booking_source: Optional[str] = Field(None, min_length=1, max_length=100)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    total_balance: Optional[Decimal] = Field(None, ge=0)
    paid_amount: Optional[Decimal] = Field(None, ge=0)
    due_amount: Optional[Decimal] = None


class BookingSourceResponse(BaseModel):
    id: int
    booking_type_id: int
    booking_type_name: Optional[str] = None
    booking_source: str
    commission_rate: Decimal
    total_balance: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    created_at: datetime


# ============== 促销码 Schemas ==============

class PromoCodeCreate(BaseModel):
    promocode: str = Field(..., min_length=1, max_length=30)
    room_type: str = Field(default="ALL", min_length=1, max_length=50)
    from_date: date
    to_date: date
    discount: Decimal = Field(..., gt=0, le=100)
    status: PromoCodeStatus = PromoCodeStatus.ACTIVE


class PromoCodeUpdate(BaseModel):
    promocode: Optional[str] = Field(None, min_length=1, max_length=30)
    room_type: Optional[str] = Field(None, min_length=1, max_length=50)
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    discount: Optional[Decimal] = Field(None, gt=0, le=100)
    status: Optional[PromoCodeStatus] = None


class PromoCodeResponse(BaseModel):
    id: int
    promocode: str
    room_type: str
    from_date: date
    to_date: date
    discount: Decimal
    status: PromoCodeStatus
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PromoCodeValidate(BaseModel):
    promocode: str
    room_class_id: int
    stay_date: date


# ============== 预订 Schemas ==============

class ReservationBase(BaseModel):
    customer_id: int
    room_id: int
    room_class_id: int
    check_in_date: date
    check_out_date: date
    check_in_time: str = Field(default="14:00", pattern=r"^\d{2}:\d{2}$")
    check_out_time: str = Field(default="12:00", pattern=r"^\d{2}:\d{2}$")
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    infants: int = Field(default=0, ge=0)
    booking_source_id: Optional[int] = None
    booking_type: Optional[str] = None
    purpose_of_visit: Optional[str] = None
    arrival_from: Optional[str] = None
    special_requests: Optional[str] = None
    remarks: Optional[str] = None
    billing_type: BillingType = BillingType.NIGHT_STAY
    discount_type: Optional[DiscountType] = None
    discount_value: Decimal = Field(default=0, ge=0)
    discount_reason: Optional[str] = None
    promo_code: Optional[str] = None
    service_charge: Decimal = Field(default=0, ge=0)
    tax: Decimal = Field(default=0, ge=0)
    commission_percent: Decimal = Field(default=0, ge=0, le=100)
    payment_method: PaymentMethod
    advance_amount: Decimal = Field(default=0, ge=0)
    advance_remarks: Optional[str] = None


class ReservationCreate(ReservationBase):
    pass


class ReservationUpdate(BaseModel):
    room_id: Optional[int] = None
    room_class_id: Optional[int] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    check_in_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    check_out_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    adults: Optional[int] = Field(None, ge=1)
    children: Optional[int] = Field(None, ge=0)
    infants: Optional[int] = Field(None, ge=0)
    booking_source_id: Optional[int] = None
    booking_type: Optional[str] = None
    purpose_of_visit: Optional[str] = None
    arrival_from: Optional[str] = None
    special_requests: Optional[str] = None
    remarks: Optional[str] = None
    billing_type: Optional[BillingType] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    discount_reason: Optional[str] = None
    promo_code: Optional[str] = None
    service_charge: Optional[Decimal] = Field(None, ge=0)
    tax: Optional[Decimal] = Field(None, ge=0)
    commission_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    payment_method: Optional[PaymentMethod] = None


class ReservationCancel(BaseModel):
    reason: str = ""


class CheckInRequest(BaseModel):
    early_check_in_fee: Decimal = Field(default=0, ge=0)
    late_check_in_fee: Decimal = Field(default=0, ge=0)
    additional_charges: Decimal = Field(default=0, ge=0)
    payment_amount: Decimal = Field(default=0, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_remarks: Optional[str] = None
    staff_notes: str = ""
    guest_confirmation: bool = False
    identity_verified: bool = False
    key_card_issued: bool = False
    room_inspected: bool = False


class CheckOutRequest(BaseModel):
    additional_charges: Decimal = Field(default=0, ge=0)
    late_checkout_fee: Decimal = Field(default=0, ge=0)
    damage_fee: Decimal = Field(default=0, ge=0)
    damage_description: Optional[str] = None
    payment_amount: Decimal = Field(default=0, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_remarks: Optional[str] = None
    staff_notes: str = ""


class PaymentResponse(BaseModel):
    id: int
    amount: Decimal
    payment_method: PaymentMethod
    payment_type: PaymentType
    remarks: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReservationResponse(BaseModel):
    id: int
    booking_number: str
    customer_id: int
    customer_code: str
    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    is_vip: bool = False
    room_id: int
    room_number: str
    floor_name: Optional[str] = None
    room_class_id: int
    room_class_name: str
    booking_source_id: Optional[int] = None
    booking_source_name: Optional[str] = None
    check_in_date: date
    check_out_date: date
    check_in_time: str
    check_out_time: str
    number_of_nights: int
    adults: int
    children: int
    infants: int
    guest_count: int
    booking_type: Optional[str] = None
    purpose_of_visit: Optional[str] = None
    arrival_from: Optional[str] = None
    special_requests: Optional[str] = None
    remarks: Optional[str] = None
    billing_type: BillingType
    base_room_rate: Decimal
    total_room_charge: Decimal
    extra_charges: Decimal
    discount_type: Optional[DiscountType] = None
    discount_value: Decimal
    discount_reason: Optional[str] = None
    discount_amount: Decimal
    promo_code: Optional[str] = None
    service_charge: Decimal
    tax: Decimal
    commission_percent: Decimal
    commission_amount: Decimal
    total_amount: Decimal
    advance_amount: Decimal
    balance_amount: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    reservation_status: ReservationStatus
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancellation_date: Optional[datetime] = None
    booked_by: Optional[int] = None
    booked_by_name: Optional[str] = None
    can_check_in: bool
    can_check_out: bool
    payments: List[PaymentResponse] = []
    created_at: datetime
    updated_at: datetime


# ============== 人事 Schemas ==============

class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: bool = True


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class DepartmentResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    staff_count: int = 0
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class StaffClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    max_leaves_per_year: int = Field(default=14, ge=0)
    is_active: bool = True


class StaffClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    max_leaves_per_year: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class StaffClassResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    max_leaves_per_year: int
    is_active: bool
    staff_count: int = 0
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class EmployeeCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    role: EmployeeRole
    department_id: Optional[int] = None
    staff_class_id: Optional[int] = None
    join_date: Optional[date] = None


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    role: Optional[EmployeeRole] = None
    department_id: Optional[int] = None
    staff_class_id: Optional[int] = None
    join_date: Optional[date] = None
    is_active: Optional[bool] = None


class PasswordReset(BaseModel):
    new_password: str = Field(..., min_length=6)


class AttendanceRecord(BaseModel):
    employee_id: int
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None


class AttendanceResponse(BaseModel):
    id: int
    employee_id: int
    employee_name: Optional[str] = None
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None
    created_at: datetime


class LeaveApply(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = None


class LeaveResponse(BaseModel):
    id: int
    employee_id: int
    employee_name: Optional[str] = None
    start_date: date
    end_date: date
    total_days: int
    status: LeaveStatus
    reason: Optional[str] = None
    applied_at: datetime
    decided_at: Optional[datetime] = None
