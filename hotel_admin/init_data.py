"""
初始化数据脚本
创建：部门、员工类别、员工账号、楼层、房型、房间、预订类型与渠道

运行：python -m hotel_admin.init_data

默认账号（密码均为 123456）：
  admin        系统管理员
  manager      值班经理
  front1       前台
  hr1          人事经理
"""
import json
from decimal import Decimal
from hotel_admin.database import SessionLocal, init_db
from hotel_admin.models.ontology import (
    Floor, RoomClass, Room, RoomStatus, BookingType, BookingSource,
    Department, StaffClass, Employee, EmployeeRole
)
from hotel_admin.security.auth import get_password_hash


def init_hr_structure(db):
    """初始化部门与员工类别"""
    departments = {}
    for name, description in [
        ('Front Office', '前台接待与预订'),
        ('Housekeeping', '客房清洁与维护'),
        ('Management', '酒店管理层'),
    ]:
        department = db.query(Department).filter(Department.name == name).first()
        if not department:
            department = Department(name=name, description=description, is_active=True)
            db.add(department)
            db.flush()
        departments[name] = department

    staff_classes = {}
    for name, max_leaves in [('Permanent', 14), ('Contract', 7), ('Trainee', 3)]:
        staff_class = db.query(StaffClass).filter(StaffClass.name == name).first()
        if not staff_class:
            staff_class = StaffClass(name=name, max_leaves_per_year=max_leaves, is_active=True)
            db.add(staff_class)
            db.flush()
        staff_classes[name] = staff_class

    db.commit()
    print(f"人事结构初始化完成: {len(departments)} 个部门, {len(staff_classes)} 个员工类别")
    return departments, staff_classes


def init_employees(db, departments, staff_classes):
    """初始化员工账号"""
    employees = [
        {'username': 'admin', 'name': '系统管理员', 'phone': '0770000000',
         'role': EmployeeRole.ADMIN, 'department': 'Management'},
        {'username': 'manager', 'name': '值班经理', 'phone': '0770000001',
         'role': EmployeeRole.MANAGER, 'department': 'Management'},
        {'username': 'front1', 'name': '前台', 'phone': '0770000002',
         'role': EmployeeRole.RECEPTIONIST, 'department': 'Front Office'},
        {'username': 'hr1', 'name': '人事经理', 'phone': '0770000003',
         'role': EmployeeRole.HR_MANAGER, 'department': 'Management'},
    ]

    created = 0
    for data in employees:
        if db.query(Employee).filter(Employee.username == data['username']).first():
            continue
        db.add(Employee(
            username=data['username'],
            password_hash=get_password_hash('123456'),
            name=data['name'],
            phone=data['phone'],
            role=data['role'],
            department_id=departments[data['department']].id,
            staff_class_id=staff_classes['Permanent'].id,
            is_active=True,
        ))
        created += 1

    db.commit()
    print(f"员工初始化完成: 新增 {created} 人")


def init_floors_and_rooms(db):
    """初始化楼层、房型与房间"""
    room_class_defs = [
        {
            'name': 'Standard', 'description': '标准双床房',
            'rate_per_night': Decimal('12000.00'), 'rate_day_use': Decimal('7000.00'),
            'hourly_rate': Decimal('1500.00'), 'extra_person_charge': Decimal('2500.00'),
            'child_charge': Decimal('1000.00'), 'max_occupancy': 3, 'standard_occupancy': 2,
            'bed_configuration': '2 Single', 'amenities': ['WiFi', 'TV', 'Air Conditioning'],
        },
        {
            'name': 'Deluxe', 'description': '豪华大床房',
            'rate_per_night': Decimal('18000.00'), 'rate_day_use': Decimal('10000.00'),
            'hourly_rate': Decimal('2200.00'), 'extra_person_charge': Decimal('3000.00'),
            'child_charge': Decimal('1500.00'), 'max_occupancy': 3, 'standard_occupancy': 2,
            'bed_configuration': '1 King', 'amenities': ['WiFi', 'TV', 'Mini Bar', 'Bathtub'],
        },
        {
            'name': 'Suite', 'description': '海景套房',
            'rate_per_night': Decimal('32000.00'), 'rate_day_use': Decimal('18000.00'),
            'hourly_rate': None, 'extra_person_charge': Decimal('4000.00'),
            'child_charge': Decimal('2000.00'), 'max_occupancy': 4, 'standard_occupancy': 2,
            'bed_configuration': '1 King + Sofa Bed',
            'amenities': ['WiFi', 'TV', 'Mini Bar', 'Kitchenette', 'Sea View'],
        },
    ]
    classes = {}
    for data in room_class_defs:
        room_class = db.query(RoomClass).filter(RoomClass.name == data['name']).first()
        if not room_class:
            values = dict(data, amenities=json.dumps(data['amenities']))
            room_class = RoomClass(is_active=True, **values)
            db.add(room_class)
            db.flush()
        classes[data['name']] = room_class

    # 楼层号 -> 房间 (房号, 房型)
    layout = {
        1: [('101', 'Standard'), ('102', 'Standard'), ('103', 'Standard'), ('104', 'Deluxe')],
        2: [('201', 'Standard'), ('202', 'Deluxe'), ('203', 'Deluxe'), ('204', 'Deluxe')],
        3: [('301', 'Suite'), ('302', 'Suite')],
    }
    created = 0
    for floor_number, rooms in layout.items():
        floor = db.query(Floor).filter(Floor.floor_number == floor_number).first()
        if not floor:
            floor = Floor(floor_number=floor_number, name=f"Floor {floor_number}")
            db.add(floor)
            db.flush()
        for room_number, class_name in rooms:
            if db.query(Room).filter(Room.room_number == room_number).first():
                continue
            db.add(Room(
                room_number=room_number,
                floor_id=floor.id,
                room_class_id=classes[class_name].id,
                status=RoomStatus.AVAILABLE,
                has_sea_view=class_name == 'Suite',
                has_kitchenette=class_name == 'Suite',
                has_balcony=floor_number > 1,
            ))
            created += 1

    db.commit()
    print(f"房间初始化完成: 新增 {created} 间, 共 {db.query(Room).count()} 间")


def init_booking_sources(db):
    """初始化预订类型与渠道"""
    defs = {
        'Direct': [('Walk-in', Decimal('0')), ('Phone', Decimal('0'))],
        'OTA': [('Booking.com', Decimal('15')), ('Expedia', Decimal('18'))],
        'Travel Agent': [('Local Agent', Decimal('10'))],
    }
    created = 0
    for type_name, sources in defs.items():
        booking_type = db.query(BookingType).filter(BookingType.name == type_name).first()
        if not booking_type:
            booking_type = BookingType(name=type_name)
            db.add(booking_type)
            db.flush()
        for source_name, commission in sources:
            if db.query(BookingSource).filter(BookingSource.booking_source == source_name).first():
                continue
            db.add(BookingSource(
                booking_type_id=booking_type.id,
                booking_source=source_name,
                commission_rate=commission,
                total_balance=Decimal('0'),
                paid_amount=Decimal('0'),
                due_amount=Decimal('0'),
            ))
            created += 1

    db.commit()
    print(f"预订渠道初始化完成: 新增 {created} 个")


def main():
    """初始化所有数据"""
    print("=" * 50)
    print("酒店运营管理后台 初始化数据")
    print("=" * 50)

    init_db()
    print("数据库表创建完成")

    db = SessionLocal()
    try:
        departments, staff_classes = init_hr_structure(db)
        init_employees(db, departments, staff_classes)
        init_floors_and_rooms(db)
        init_booking_sources(db)

        print("=" * 50)
        print("初始化完成！")
        print()
        print("默认账号（密码均为 123456）：")
        print("  系统管理员: admin")
        print("  值班经理:   manager")
        print("  前台:       front1")
        print("  人事经理:   hr1")
        print("=" * 50)
    finally:
        db.close()


if __name__ == '__main__':
    main()
