"""
Pytest 配置和共享 fixtures
"""
import json
import pytest
from datetime import date, timedelta
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from hotel_admin.database import Base, get_db
from hotel_admin.models import ontology  # noqa: F401
from hotel_admin.models.ontology import (
    Employee, EmployeeRole, Floor, RoomClass, Room, RoomStatus, Customer,
    BookingType, BookingSource, PaymentMethod
)
from hotel_admin.models.schemas import ReservationCreate
from hotel_admin.security.auth import get_password_hash, create_access_token
from hotel_admin.services.reservation_service import ReservationService
from hotel_admin.main import app


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 认证相关 Fixtures ==============

def _make_employee(db_session, username: str, name: str, role: EmployeeRole) -> Employee:
    employee = Employee(
        username=username,
        password_hash=get_password_hash("123456"),
        name=name,
        role=role,
        is_active=True
    )
    db_session.add(employee)
    db_session.commit()
    db_session.refresh(employee)
    return employee


@pytest.fixture
def admin_user(db_session):
    """创建管理员"""
    return _make_employee(db_session, "admin", "管理员", EmployeeRole.ADMIN)


@pytest.fixture
def admin_token(admin_user):
    return create_access_token(admin_user.id, admin_user.role)


@pytest.fixture
def manager_token(db_session):
    """创建经理用户并返回token"""
    manager = _make_employee(db_session, "manager", "经理", EmployeeRole.MANAGER)
    return create_access_token(manager.id, manager.role)


@pytest.fixture
def receptionist_token(db_session):
    """创建前台用户并返回token"""
    receptionist = _make_employee(db_session, "front1", "前台小王", EmployeeRole.RECEPTIONIST)
    return create_access_token(receptionist.id, receptionist.role)


@pytest.fixture
def hr_token(db_session):
    """创建人事经理并返回token"""
    hr = _make_employee(db_session, "hr1", "人事经理", EmployeeRole.HR_MANAGER)
    return create_access_token(hr.id, hr.role)


@pytest.fixture
def admin_auth_headers(admin_token):
    """返回管理员认证的请求头"""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def manager_auth_headers(manager_token):
    """返回经理认证的请求头"""
    return {"Authorization": f"Bearer {manager_token}"}


@pytest.fixture
def receptionist_auth_headers(receptionist_token):
    """返回前台认证的请求头"""
    return {"Authorization": f"Bearer {receptionist_token}"}


@pytest.fixture
def hr_auth_headers(hr_token):
    """返回人事经理认证的请求头"""
    return {"Authorization": f"Bearer {hr_token}"}


# ============== 实体相关 Fixtures ==============

@pytest.fixture
def sample_floor(db_session):
    """创建测试楼层"""
    floor = Floor(floor_number=1, name="Ground Floor")
    db_session.add(floor)
    db_session.commit()
    db_session.refresh(floor)
    return floor


@pytest.fixture
def sample_room_class(db_session):
    """创建测试房型"""
    room_class = RoomClass(
        name="Deluxe",
        description="Deluxe Room",
        rate_per_night=Decimal("10000.00"),
        rate_day_use=Decimal("6000.00"),
        hourly_rate=Decimal("1500.00"),
        extra_person_charge=Decimal("2000.00"),
        child_charge=Decimal("1000.00"),
        max_occupancy=3,
        standard_occupancy=2,
        cleaning_frequency_days=1,
        amenities=json.dumps(["WiFi", "TV"]),
        is_active=True
    )
    db_session.add(room_class)
    db_session.commit()
    db_session.refresh(room_class)
    return room_class


@pytest.fixture
def sample_room(db_session, sample_floor, sample_room_class):
    """创建测试房间"""
    room = Room(
        room_number="101",
        floor_id=sample_floor.id,
        room_class_id=sample_room_class.id,
        status=RoomStatus.AVAILABLE,
        has_sea_view=True,
        is_active=True
    )
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def sample_customer(db_session):
    """创建测试客人"""
    customer = Customer(
        customer_code="CUST-0001",
        first_name="Nimal",
        last_name="Perera",
        email="nimal@example.com",
        phone="0771234567",
        identity_type="NIC",
        identity_number="901234567V",
        nationality="native",
        is_active=True
    )
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def sample_booking_source(db_session):
    """创建测试预订渠道"""
    booking_type = BookingType(name="OTA")
    db_session.add(booking_type)
    db_session.flush()
    source = BookingSource(
        booking_type_id=booking_type.id,
        booking_source="Booking.com",
        commission_rate=Decimal("15"),
        total_balance=Decimal("1000"),
        paid_amount=Decimal("400"),
        due_amount=Decimal("600"),
    )
    db_session.add(source)
    db_session.commit()
    db_session.refresh(source)
    return source


@pytest.fixture
def reservation_payload(sample_customer, sample_room, sample_room_class):
    """今天入住、住两晚的预订请求"""
    return {
        "customer_id": sample_customer.id,
        "room_id": sample_room.id,
        "room_class_id": sample_room_class.id,
        "check_in_date": date.today().isoformat(),
        "check_out_date": (date.today() + timedelta(days=2)).isoformat(),
        "adults": 2,
        "payment_method": "CASH",
        "advance_amount": "5000",
    }


@pytest.fixture
def sample_reservation(db_session, sample_customer, sample_room, sample_room_class):
    """创建测试预订（今天入住，两晚，预付 5000）"""
    data = ReservationCreate(
        customer_id=sample_customer.id,
        room_id=sample_room.id,
        room_class_id=sample_room_class.id,
        check_in_date=date.today(),
        check_out_date=date.today() + timedelta(days=2),
        adults=2,
        payment_method=PaymentMethod.CASH,
        advance_amount=Decimal("5000"),
    )
    return ReservationService(db_session).create_reservation(data)
