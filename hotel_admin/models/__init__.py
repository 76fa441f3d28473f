# Ontology Models
from hotel_admin.models.ontology import (
    Floor, FloorPlan, RoomClass, Room, Customer, BookingType, BookingSource,
    PromoCode, Reservation, Payment, Department, StaffClass, Employee,
    Attendance, Leave
)

__all__ = [
    'Floor', 'FloorPlan', 'RoomClass', 'Room', 'Customer', 'BookingType',
    'BookingSource', 'PromoCode', 'Reservation', 'Payment', 'Department',
    'StaffClass', 'Employee', 'Attendance', 'Leave'
]
