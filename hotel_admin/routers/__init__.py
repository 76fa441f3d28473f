# API Routers
from hotel_admin.routers import (
    auth, floors, rooms, customers, reservations, booking_sources, promo_codes, hr, front_office
)

__all__ = ['auth', 'floors', 'rooms', 'customers', 'reservations', 'booking_sources', 'promo_codes', 'hr',
           'front_office']
