"""
房间服务 - 本体操作层
管理 RoomClass 与 Room 对象
"""
import json
import logging
from datetime import datetime, date, timedelta, time
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload
from hotel_admin.models.ontology import (
    Room, RoomClass, RoomStatus, Floor, Reservation, ReservationStatus
)
from hotel_admin.models.schemas import (
    RoomClassCreate, RoomClassUpdate, RoomCreate, RoomUpdate
)
from hotel_admin.services import NotFoundError
from hotel_admin.services.listing import contains_any

logger = logging.getLogger(__name__)

ACTIVE_RESERVATION_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)
UNSELLABLE_ROOM_STATUSES = (RoomStatus.OUT_OF_ORDER, RoomStatus.MAINTENANCE)


class RoomService:
    """房间服务"""

    def __init__(self, db: Session):
        self.db = db

    # ============== 房型 ==============

    def get_room_classes(self, is_active: Optional[bool] = None) -> List[RoomClass]:
        """获取房型列表"""
        query = self.db.query(RoomClass)
        if is_active is not None:
            query = query.filter(RoomClass.is_active == is_active)
        return query.order_by(RoomClass.rate_per_night).all()

    def get_room_class(self, room_class_id: int) -> Optional[RoomClass]:
        return self.db.query(RoomClass).filter(RoomClass.id == room_class_id).first()

    def get_room_class_detail(self, room_class: RoomClass) -> dict:
        return {
            "id": room_class.id,
            "name": room_class.name,
            "description": room_class.description,
            "rate_per_night": room_class.rate_per_night,
            "rate_day_use": room_class.rate_day_use,
            "hourly_rate": room_class.hourly_rate,
            "extra_person_charge": room_class.extra_person_charge or 0,
            "child_charge": room_class.child_charge or 0,
            "max_occupancy": room_class.max_occupancy,
            "standard_occupancy": room_class.standard_occupancy,
            "room_size": room_class.room_size,
            "bed_configuration": room_class.bed_configuration,
            "cleaning_frequency_days": room_class.cleaning_frequency_days or 1,
            "amenities": json.loads(room_class.amenities) if room_class.amenities else [],
            "special_features": room_class.special_features,
            "is_active": room_class.is_active,
            "room_count": self.db.query(Room).filter(Room.room_class_id == room_class.id).count(),
            "created_at": room_class.created_at,
            "updated_at": room_class.updated_at,
        }

    def get_room_class_summary(self) -> dict:
        """房型汇总：总数、启用数、平均房价"""
        classes = self.db.query(RoomClass).all()
        total = len(classes)
        average = (
            sum((c.rate_per_night for c in classes), Decimal("0")) / total if total else Decimal("0")
        )
        return {
            "total": total,
            "active": sum(1 for c in classes if c.is_active),
            "average_rate": round(float(average), 2),
        }

    def _check_occupancy(self, standard: int, maximum: int):
        if standard > maximum:
            raise ValueError("标准入住人数不能大于最大入住人数")

    def create_room_class(self, data: RoomClassCreate) -> RoomClass:
        """创建房型"""
        if self.db.query(RoomClass).filter(RoomClass.name == data.name).first():
            raise ValueError(f"房型名称 {data.name} 已存在")
        self._check_occupancy(data.standard_occupancy, data.max_occupancy)

        values = data.model_dump()
        values["amenities"] = json.dumps(values.get("amenities") or [])
        room_class = RoomClass(**values)
        self.db.add(room_class)
        self.db.commit()
        self.db.refresh(room_class)
        logger.info("Room class %s created", room_class.name)
        return room_class

    def update_room_class(self, room_class_id: int, data: RoomClassUpdate) -> RoomClass:
        """更新房型"""
        room_class = self.get_room_class(room_class_id)
        if not room_class:
            raise NotFoundError("房型不存在")

        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items()
                       if v is not None or k in ("description", "hourly_rate")}

        if "name" in update_data and update_data["name"] != room_class.name:
            if self.db.query(RoomClass).filter(RoomClass.name == update_data["name"]).first():
                raise ValueError(f"房型名称 {update_data['name']} 已存在")

        self._check_occupancy(
            update_data.get("standard_occupancy", room_class.standard_occupancy),
            update_data.get("max_occupancy", room_class.max_occupancy),
        )

        if "amenities" in update_data:
            update_data["amenities"] = json.dumps(update_data["amenities"])

        for key, value in update_data.items():
            setattr(room_class, key, value)

        self.db.commit()
        self.db.refresh(room_class)
        return room_class

    def delete_room_class(self, room_class_id: int) -> None:
        """删除房型（有房间使用时拒绝）"""
        room_class = self.get_room_class(room_class_id)
        if not room_class:
            raise NotFoundError("房型不存在")

        room_count = self.db.query(Room).filter(Room.room_class_id == room_class_id).count()
        if room_count:
            raise ValueError(f"该房型下还有 {room_count} 间房，无法删除")

        self.db.delete(room_class)
        self.db.commit()

    # ============== 房间 ==============

    def get_rooms(
        self,
        search: Optional[str] = None,
        status: Optional[RoomStatus] = None,
        room_class_id: Optional[int] = None,
        floor_id: Optional[int] = None,
        has_balcony: Optional[bool] = None,
        has_sea_view: Optional[bool] = None,
        has_kitchenette: Optional[bool] = None,
        is_active: Optional[bool] = None,
        cleaning_due: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[Room]:
        """获取房间列表（按楼层号、房号排序）"""
        query = self.db.query(Room).join(Floor, Room.floor_id == Floor.id).options(
            joinedload(Room.room_class), joinedload(Room.floor)
        )

        condition = contains_any(search, Room.room_number)
        if condition is not None:
            query = query.filter(condition)
        if status:
            query = query.filter(Room.status == status)
        if room_class_id:
            query = query.filter(Room.room_class_id == room_class_id)
        if floor_id:
            query = query.filter(Room.floor_id == floor_id)
        if has_balcony is not None:
            query = query.filter(Room.has_balcony == has_balcony)
        if has_sea_view is not None:
            query = query.filter(Room.has_sea_view == has_sea_view)
        if has_kitchenette is not None:
            query = query.filter(Room.has_kitchenette == has_kitchenette)
        if is_active is not None:
            query = query.filter(Room.is_active == is_active)

        if cleaning_due:
            now = now or datetime.now()
            day_start = datetime.combine(now.date(), time.min)
            if cleaning_due == "overdue":
                query = query.filter(Room.next_cleaning_due < now)
            elif cleaning_due == "due_today":
                query = query.filter(
                    Room.next_cleaning_due >= day_start,
                    Room.next_cleaning_due < day_start + timedelta(days=1)
                )
            elif cleaning_due == "due_week":
                query = query.filter(
                    Room.next_cleaning_due >= day_start,
                    Room.next_cleaning_due < day_start + timedelta(days=7)
                )
            else:
                raise ValueError("cleaning_due 仅支持 overdue / due_today / due_week")

        return query.order_by(Floor.floor_number, Room.room_number).all()

    def get_room(self, room_id: int) -> Optional[Room]:
        """获取单个房间"""
        return self.db.query(Room).filter(Room.id == room_id).first()

    def get_room_detail(self, room: Room) -> dict:
        return {
            "id": room.id,
            "room_number": room.room_number,
            "floor_id": room.floor_id,
            "floor_name": room.floor.name if room.floor else None,
            "floor_number": room.floor.floor_number if room.floor else None,
            "room_class_id": room.room_class_id,
            "room_class_name": room.room_class.name if room.room_class else None,
            "rate_per_night": room.room_class.rate_per_night if room.room_class else None,
            "max_occupancy": room.room_class.max_occupancy if room.room_class else None,
            "status": room.status,
            "has_balcony": bool(room.has_balcony),
            "has_sea_view": bool(room.has_sea_view),
            "has_kitchenette": bool(room.has_kitchenette),
            "is_active": bool(room.is_active),
            "last_cleaned": room.last_cleaned,
            "next_cleaning_due": room.next_cleaning_due,
            "notes": room.notes,
            "reservation_count": self.db.query(Reservation).filter(
                Reservation.room_id == room.id
            ).count(),
        }

    def _check_refs(self, floor_id: Optional[int], room_class_id: Optional[int]):
        if floor_id is not None and not self.db.query(Floor).filter(Floor.id == floor_id).first():
            raise ValueError("楼层不存在")
        if room_class_id is not None and not self.get_room_class(room_class_id):
            raise ValueError("房型不存在")

    def create_room(self, data: RoomCreate) -> Room:
        """创建房间"""
        if self.db.query(Room).filter(Room.room_number == data.room_number).first():
            raise ValueError(f"房间号 {data.room_number} 已存在")
        self._check_refs(data.floor_id, data.room_class_id)

        room = Room(**data.model_dump())
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        logger.info("Room %s created", room.room_number)
        return room

    def update_room(self, room_id: int, data: RoomUpdate) -> Room:
        """更新房间"""
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("房间不存在")

        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items()
                       if v is not None or k in ("notes", "next_cleaning_due")}

        if "room_number" in update_data and update_data["room_number"] != room.room_number:
            if self.db.query(Room).filter(Room.room_number == update_data["room_number"]).first():
                raise ValueError(f"房间号 {update_data['room_number']} 已存在")
        self._check_refs(update_data.get("floor_id"), update_data.get("room_class_id"))

        for key, value in update_data.items():
            setattr(room, key, value)

        self.db.commit()
        self.db.refresh(room)
        return room

    def update_room_status(self, room_id: int, status: RoomStatus) -> Room:
        """更新房间状态；置为可用时记录清洁时间"""
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("房间不存在")

        old_status = room.status
        room.status = status
        if old_status == RoomStatus.CLEANING and status == RoomStatus.AVAILABLE:
            now = datetime.now()
            room.last_cleaned = now
            days = room.room_class.cleaning_frequency_days if room.room_class else 1
            room.next_cleaning_due = now + timedelta(days=days or 1)

        self.db.commit()
        self.db.refresh(room)
        logger.info("Room %s status %s -> %s", room.room_number,
                    old_status.value if old_status else None, status.value)
        return room

    def delete_room(self, room_id: int) -> None:
        """删除房间（有预订记录时拒绝）"""
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("房间不存在")

        if self.db.query(Reservation).filter(Reservation.room_id == room_id).count():
            raise ValueError("房间存在预订记录，无法删除")

        self.db.delete(room)
        self.db.commit()

    def get_room_status_summary(self) -> dict:
        """房态统计"""
        rows = self.db.query(Room.status, func.count(Room.id)).filter(
            Room.is_active == True
        ).group_by(Room.status).all()
        counts = {status.value: 0 for status in RoomStatus}
        for status, count in rows:
            counts[status.value] = count
        counts["total"] = sum(counts.values())
        return counts

    def get_available_rooms(self, check_in_date: date, check_out_date: date,
                            room_class_id: Optional[int] = None,
                            guests: Optional[int] = None) -> List[Room]:
        """
        获取可预订房间

        排除停用/维修房、与 [check_in, check_out) 有重叠的有效预订，以及容量不足的房间
        """
        if check_out_date <= check_in_date:
            raise ValueError("离店日期必须晚于入住日期")

        busy = select(Reservation.room_id).where(
            Reservation.reservation_status.in_(ACTIVE_RESERVATION_STATUSES),
            Reservation.check_in_date < check_out_date,
            Reservation.check_out_date > check_in_date,
        )

        query = self.db.query(Room).join(RoomClass).join(Floor, Room.floor_id == Floor.id).filter(
            Room.is_active == True,
            ~Room.status.in_(UNSELLABLE_ROOM_STATUSES),
            ~Room.id.in_(busy),
        )
        if room_class_id:
            query = query.filter(Room.room_class_id == room_class_id)
        if guests:
            query = query.filter(RoomClass.max_occupancy >= guests)

        return query.order_by(Floor.floor_number, Room.room_number).all()
