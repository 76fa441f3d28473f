"""
集中定义所有权限码常量及角色映射
"""
from hotel_admin.models.ontology import EmployeeRole

# 楼层 / 房间
FLOOR_READ = "floor:read"
FLOOR_WRITE = "floor:write"
ROOM_READ = "room:read"
ROOM_WRITE = "room:write"
ROOM_STATUS = "room:status"

# 客人
CUSTOMER_READ = "customer:read"
CUSTOMER_WRITE = "customer:write"
CUSTOMER_BAN = "customer:ban"

# 预订
RESERVATION_READ = "reservation:read"
RESERVATION_WRITE = "reservation:write"
RESERVATION_CANCEL = "reservation:cancel"

# 入住/退房
CHECKIN_EXECUTE = "checkin:execute"
CHECKOUT_EXECUTE = "checkout:execute"

# 预订渠道 / 促销码
BOOKING_SOURCE_READ = "booking_source:read"
BOOKING_SOURCE_WRITE = "booking_source:write"
PROMO_READ = "promo:read"
PROMO_WRITE = "promo:write"

# 人事
EMPLOYEE_READ = "employee:read"
EMPLOYEE_WRITE = "employee:write"
HR_READ = "hr:read"
HR_WRITE = "hr:write"
LEAVE_DECIDE = "leave:decide"


_FRONT_DESK = {
    FLOOR_READ, ROOM_READ, ROOM_STATUS,
    CUSTOMER_READ, CUSTOMER_WRITE,
    RESERVATION_READ, RESERVATION_WRITE, RESERVATION_CANCEL,
    CHECKIN_EXECUTE, CHECKOUT_EXECUTE,
    BOOKING_SOURCE_READ, PROMO_READ,
}

_HR = {
    EMPLOYEE_READ, EMPLOYEE_WRITE, HR_READ, HR_WRITE, LEAVE_DECIDE,
}

# ADMIN 不在映射中，始终拥有全部权限
ROLE_PERMISSIONS = {
    EmployeeRole.MANAGER: _FRONT_DESK | {
        FLOOR_WRITE, ROOM_WRITE, CUSTOMER_BAN,
        BOOKING_SOURCE_WRITE, PROMO_WRITE,
        EMPLOYEE_READ, HR_READ,
    },
    EmployeeRole.RECEPTIONIST: set(_FRONT_DESK),
    EmployeeRole.HR_MANAGER: _HR | {FLOOR_READ, ROOM_READ},
}


def role_has_permission(role: EmployeeRole, code: str) -> bool:
    """判断角色是否拥有权限码"""
    if role == EmployeeRole.ADMIN:
        return True
    return code in ROLE_PERMISSIONS.get(role, set())
