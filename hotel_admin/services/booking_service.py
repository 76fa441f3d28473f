"""
预订渠道服务
管理 BookingType 与 BookingSource 对象
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from hotel_admin.models.ontology import BookingType, BookingSource, Reservation
from hotel_admin.models.schemas import (
    BookingTypeCreate, BookingSourceCreate, BookingSourceUpdate
)
from hotel_admin.services import NotFoundError
from hotel_admin.services.listing import contains_any

logger = logging.getLogger(__name__)


class BookingService:
    """预订渠道服务"""

    def __init__(self, db: Session):
        self.db = db

    # ============== 预订类型 ==============

    def get_types(self) -> List[BookingType]:
        return self.db.query(BookingType).order_by(BookingType.name).all()

    def get_type(self, type_id: int) -> Optional[BookingType]:
        return self.db.query(BookingType).filter(BookingType.id == type_id).first()

    def get_type_detail(self, booking_type: BookingType) -> dict:
        return {
            "id": booking_type.id,
            "name": booking_type.name,
            "source_count": len(booking_type.sources),
            "created_at": booking_type.created_at,
        }

    def _check_type_name(self, name: str, exclude_id: Optional[int] = None):
        query = self.db.query(BookingType).filter(BookingType.name == name)
        if exclude_id:
            query = query.filter(BookingType.id != exclude_id)
        if query.first():
            raise ValueError(f"预订类型 {name} 已存在")

    def create_type(self, data: BookingTypeCreate) -> BookingType:
        """创建预订类型"""
        name = data.name.strip()
        self._check_type_name(name)
        booking_type = BookingType(name=name)
        self.db.add(booking_type)
        self.db.commit()
        self.db.refresh(booking_type)
        return booking_type

    def update_type(self, type_id: int, data: BookingTypeCreate) -> BookingType:
        """重命名预订类型"""
        booking_type = self.get_type(type_id)
        if not booking_type:
            raise NotFoundError("预订类型不存在")
        name = data.name.strip()
        self._check_type_name(name, exclude_id=type_id)
        booking_type.name = name
        self.db.commit()
        self.db.refresh(booking_type)
        return booking_type

    def delete_type(self, type_id: int) -> None:
        """删除预订类型（有渠道引用时拒绝）"""
        booking_type = self.get_type(type_id)
        if not booking_type:
            raise NotFoundError("预订类型不存在")
        if booking_type.sources:
            raise ValueError(f"该类型下还有 {len(booking_type.sources)} 个预订渠道，无法删除")
        self.db.delete(booking_type)
        self.db.commit()

    # ============== 预订渠道 ==============

    def get_sources(self, search: Optional[str] = None,
                    booking_type_id: Optional[int] = None) -> List[BookingSource]:
        """获取预订渠道列表"""
        query = self.db.query(BookingSource).options(joinedload(BookingSource.booking_type))
        condition = contains_any(search, BookingSource.booking_source)
        if condition is not None:
            query = query.filter(condition)
        if booking_type_id:
            query = query.filter(BookingSource.booking_type_id == booking_type_id)
        return query.order_by(BookingSource.booking_source).all()

    def get_source(self, source_id: int) -> Optional[BookingSource]:
        return self.db.query(BookingSource).filter(BookingSource.id == source_id).first()

    def get_source_detail(self, source: BookingSource) -> dict:
        return {
            "id": source.id,
            "booking_type_id": source.booking_type_id,
            "booking_type_name": source.booking_type.name if source.booking_type else None,
            "booking_source": source.booking_source,
            "commission_rate": source.commission_rate,
            "total_balance": source.total_balance,
            "paid_amount": source.paid_amount,
            "due_amount": source.due_amount,
            "created_at": source.created_at,
        }

    def create_source(self, data: BookingSourceCreate) -> BookingSource:
        """创建预订渠道；未给出应付金额时按 总额 - 已付 计算"""
        if not self.get_type(data.booking_type_id):
            raise ValueError("预订类型不存在")

        values = data.model_dump()
        values["booking_source"] = values["booking_source"].strip()
        if values.get("due_amount") is None:
            values["due_amount"] = data.total_balance - data.paid_amount

        source = BookingSource(**values)
        self.db.add(source)
        self.db.commit()
        self.db.refresh(source)
        logger.info("Booking source %s created", source.booking_source)
        return source

    def update_source(self, source_id: int, data: BookingSourceUpdate) -> BookingSource:
        """更新预订渠道"""
        source = self.get_source(source_id)
        if not source:
            raise NotFoundError("预订渠道不存在")

        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if "booking_type_id" in update_data and not self.get_type(update_data["booking_type_id"]):
            raise ValueError("预订类型不存在")

        for key, value in update_data.items():
            setattr(source, key, value)

        if "due_amount" not in update_data and (
            "total_balance" in update_data or "paid_amount" in update_data
        ):
            source.due_amount = source.total_balance - source.paid_amount

        self.db.commit()
        self.db.refresh(source)
        return source

    def delete_source(self, source_id: int) -> None:
        """删除预订渠道（有预订引用时拒绝）"""
        source = self.get_source(source_id)
        if not source:
            raise NotFoundError("预订渠道不存在")
        if self.db.query(Reservation).filter(Reservation.booking_source_id == source_id).count():
            raise ValueError("该渠道已有预订记录，无法删除")
        self.db.delete(source)
        self.db.commit()
