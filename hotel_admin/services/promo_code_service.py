"""
促销码服务
"""
import logging
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session
from hotel_admin.models.ontology import PromoCode, PromoCodeStatus, RoomClass
from hotel_admin.models.schemas import PromoCodeCreate, PromoCodeUpdate
from hotel_admin.services import NotFoundError
from hotel_admin.services.listing import contains_any

logger = logging.getLogger(__name__)

ALL_ROOM_TYPES = "ALL"


class PromoCodeService:
    """促销码服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_promo_codes(self, search: Optional[str] = None,
                        status: Optional[PromoCodeStatus] = None) -> List[PromoCode]:
        """获取促销码列表"""
        query = self.db.query(PromoCode)
        condition = contains_any(search, PromoCode.promocode, PromoCode.room_type)
        if condition is not None:
            query = query.filter(condition)
        if status:
            query = query.filter(PromoCode.status == status)
        return query.order_by(PromoCode.from_date.desc()).all()

    def get_promo_code(self, promo_id: int) -> Optional[PromoCode]:
        return self.db.query(PromoCode).filter(PromoCode.id == promo_id).first()

    def get_by_code(self, code: str) -> Optional[PromoCode]:
        return self.db.query(PromoCode).filter(PromoCode.promocode == code.strip().upper()).first()

    def _normalize_room_type(self, room_type: str) -> str:
        room_type = room_type.strip()
        if room_type.upper() == ALL_ROOM_TYPES:
            return ALL_ROOM_TYPES
        if not self.db.query(RoomClass).filter(RoomClass.name == room_type).first():
            raise ValueError(f"房型 {room_type} 不存在")
        return room_type

    def _check_code(self, code: str, exclude_id: Optional[int] = None):
        query = self.db.query(PromoCode).filter(PromoCode.promocode == code)
        if exclude_id:
            query = query.filter(PromoCode.id != exclude_id)
        if query.first():
            raise ValueError(f"促销码 {code} 已存在")

    def create_promo_code(self, data: PromoCodeCreate) -> PromoCode:
        """创建促销码（代码统一大写）"""
        if data.from_date > data.to_date:
            raise ValueError("开始日期不能晚于结束日期")

        code = data.promocode.strip().upper()
        self._check_code(code)

        values = data.model_dump()
        values["promocode"] = code
        values["room_type"] = self._normalize_room_type(data.room_type)

        promo = PromoCode(**values)
        self.db.add(promo)
        self.db.commit()
        self.db.refresh(promo)
        logger.info("Promo code %s created (%s%%)", promo.promocode, promo.discount)
        return promo

    def update_promo_code(self, promo_id: int, data: PromoCodeUpdate) -> PromoCode:
        """更新促销码"""
        promo = self.get_promo_code(promo_id)
        if not promo:
            raise NotFoundError("促销码不存在")

        update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if "promocode" in update_data:
            update_data["promocode"] = update_data["promocode"].strip().upper()
            self._check_code(update_data["promocode"], exclude_id=promo_id)
        if "room_type" in update_data:
            update_data["room_type"] = self._normalize_room_type(update_data["room_type"])

        from_date = update_data.get("from_date", promo.from_date)
        to_date = update_data.get("to_date", promo.to_date)
        if from_date > to_date:
            raise ValueError("开始日期不能晚于结束日期")

        for key, value in update_data.items():
            setattr(promo, key, value)

        self.db.commit()
        self.db.refresh(promo)
        return promo

    def delete_promo_code(self, promo_id: int) -> None:
        promo = self.get_promo_code(promo_id)
        if not promo:
            raise NotFoundError("促销码不存在")
        self.db.delete(promo)
        self.db.commit()

    def validate(self, code: str, room_class: RoomClass, stay_date: date) -> PromoCode:
        """
        校验促销码

        Raises:
            ValueError: 促销码不存在、未启用、不在有效期或不适用于该房型
        """
        promo = self.get_by_code(code or "")
        if not promo:
            raise ValueError("促销码不存在")
        if promo.status != PromoCodeStatus.ACTIVE:
            raise ValueError("促销码未启用")
        if not (promo.from_date <= stay_date <= promo.to_date):
            raise ValueError("促销码不在有效期内")
        if promo.room_type != ALL_ROOM_TYPES and promo.room_type.lower() != room_class.name.lower():
            raise ValueError(f"促销码不适用于房型 {room_class.name}")
        return promo

    def validate_for_room_class(self, code: str, room_class_id: int, stay_date: date) -> dict:
        """按房型 ID 校验，返回折扣"""
        room_class = self.db.query(RoomClass).filter(RoomClass.id == room_class_id).first()
        if not room_class:
            raise NotFoundError("房型不存在")
        promo = self.validate(code, room_class, stay_date)
        return {
            "valid": True,
            "promocode": promo.promocode,
            "discount": promo.discount,
            "room_type": promo.room_type,
        }
