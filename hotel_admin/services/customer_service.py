"""
客人服务 - 本体操作层
管理 Customer 对象：档案、黑名单、快速检索
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from sqlalchemy import desc, func
from sqlalchemy.orm import Session
from hotel_admin.models.ontology import Customer, Reservation, ReservationStatus
from hotel_admin.models.schemas import CustomerCreate, CustomerUpdate
from hotel_admin.services import NotFoundError
from hotel_admin.services.listing import apply_sort, contains_any, paginate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": Customer.created_at,
    "first_name": Customer.first_name,
    "last_name": Customer.last_name,
    "customer_code": Customer.customer_code,
}


class CustomerService:
    """客人服务"""

    def __init__(self, db: Session):
        self.db = db

    def _generate_customer_code(self) -> str:
        """生成客人编号：CUST-0001"""
        last = self.db.query(Customer).order_by(desc(Customer.id)).first()
        seq = 1
        if last and last.customer_code and last.customer_code.startswith("CUST-"):
            try:
                seq = int(last.customer_code[5:]) + 1
            except ValueError:
                seq = last.id + 1
        return f"CUST-{str(seq).zfill(4)}"

    def _filtered(self, search: Optional[str] = None, vip: Optional[bool] = None,
                  nationality: Optional[str] = None):
        query = self.db.query(Customer).filter(Customer.is_active == True)

        condition = contains_any(
            search,
            Customer.first_name, Customer.last_name, Customer.email,
            Customer.phone, Customer.identity_number, Customer.customer_code
        )
        if condition is not None:
            query = query.filter(condition)
        if vip is not None:
            query = query.filter(Customer.is_vip == vip)
        if nationality:
            query = query.filter(Customer.nationality == nationality)
        return query

    def get_customers(self, search: Optional[str] = None, vip: Optional[bool] = None,
                      nationality: Optional[str] = None, sort_by: Optional[str] = None,
                      sort_order: Optional[str] = None, page: int = 1,
                      limit: Optional[int] = None) -> Tuple[List[Customer], dict]:
        """获取客人列表（仅有效客人，分页）"""
        query = self._filtered(search, vip, nationality)
        query = apply_sort(query, SORT_COLUMNS, sort_by, sort_order, "created_at")
        return paginate(query, page, limit)

    def get_all_customers(self, search: Optional[str] = None, vip: Optional[bool] = None,
                          nationality: Optional[str] = None, sort_by: Optional[str] = None,
                          sort_order: Optional[str] = None) -> List[Customer]:
        """导出用：不分页"""
        query = self._filtered(search, vip, nationality)
        return apply_sort(query, SORT_COLUMNS, sort_by, sort_order, "created_at").all()

    def get_customer_stats(self) -> dict:
        """客人统计：总数、VIP、近 30 天新增、国籍分布"""
        active = self.db.query(Customer).filter(Customer.is_active == True)
        since = datetime.utcnow() - timedelta(days=30)
        return {
            "total": active.count(),
            "vip": active.filter(Customer.is_vip == True).count(),
            "recent": active.filter(Customer.created_at >= since).count(),
            "native": active.filter(Customer.nationality == "native").count(),
            "foreigner": active.filter(Customer.nationality == "foreigner").count(),
        }

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        """获取单个客人"""
        return self.db.query(Customer).filter(Customer.id == customer_id).first()

    def get_customer_detail(self, customer: Customer) -> dict:
        """客人详情（含预订数量）"""
        return {
            "id": customer.id,
            "customer_code": customer.customer_code,
            "first_name": customer.first_name,
            "last_name": customer.last_name,
            "full_name": customer.full_name,
            "email": customer.email,
            "phone": customer.phone,
            "identity_type": customer.identity_type or "NIC",
            "identity_number": customer.identity_number,
            "nationality": customer.nationality,
            "address": customer.address,
            "city": customer.city,
            "country": customer.country,
            "is_vip": bool(customer.is_vip),
            "vip_level": customer.vip_level,
            "is_active": bool(customer.is_active),
            "is_banned": bool(customer.is_banned),
            "ban_reason": customer.ban_reason,
            "special_requests": customer.special_requests,
            "notes": customer.notes,
            "reservation_count": self.db.query(Reservation).filter(
                Reservation.customer_id == customer.id
            ).count(),
            "created_at": customer.created_at,
            "updated_at": customer.updated_at,
        }

    def get_recent_reservations(self, customer_id: int, limit: int = 5) -> List[dict]:
        """最近的预订"""
        reservations = self.db.query(Reservation).filter(
            Reservation.customer_id == customer_id
        ).order_by(desc(Reservation.created_at), desc(Reservation.id)).limit(limit).all()

        return [
            {
                "id": r.id,
                "booking_number": r.booking_number,
                "room_number": r.room.room_number if r.room else None,
                "room_class_name": r.room_class.name if r.room_class else None,
                "check_in_date": r.check_in_date,
                "check_out_date": r.check_out_date,
                "total_amount": r.total_amount,
                "reservation_status": r.reservation_status,
                "created_at": r.created_at,
            }
            for r in reservations
        ]

    def _check_unique(self, email: Optional[str], identity_number: Optional[str],
                      exclude_id: Optional[int] = None):
        if email:
            query = self.db.query(Customer).filter(func.lower(Customer.email) == email.lower())
            if exclude_id:
                query = query.filter(Customer.id != exclude_id)
            if query.first():
                raise ValueError(f"邮箱 {email} 已被使用")
        if identity_number:
            query = self.db.query(Customer).filter(Customer.identity_number == identity_number)
            if exclude_id:
                query = query.filter(Customer.id != exclude_id)
            if query.first():
                raise ValueError(f"证件号 {identity_number} 已被使用")

    def create_customer(self, data: CustomerCreate) -> Customer:
        """创建客人"""
        self._check_unique(data.email, data.identity_number)

        customer = Customer(customer_code=self._generate_customer_code(), **data.model_dump())
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        logger.info("Customer %s created", customer.customer_code)
        return customer

    def update_customer(self, customer_id: int, data: CustomerUpdate) -> Customer:
        """更新客人信息"""
        customer = self.get_customer(customer_id)
        if not customer:
            raise NotFoundError("客人不存在")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("email"):
            update_data["email"] = update_data["email"].strip().lower()
        self._check_unique(update_data.get("email"), update_data.get("identity_number"),
                           exclude_id=customer_id)

        required = ("first_name", "email", "phone", "identity_number", "nationality")
        for key, value in update_data.items():
            if value is None and key in required:
                continue
            setattr(customer, key, value)

        self.db.commit()
        self.db.refresh(customer)
        return customer

    def delete_customer(self, customer_id: int) -> Customer:
        """软删除客人（有进行中的预订时拒绝）"""
        customer = self.get_customer(customer_id)
        if not customer or not customer.is_active:
            raise NotFoundError("客人不存在")

        active = self.db.query(Reservation).filter(
            Reservation.customer_id == customer_id,
            Reservation.reservation_status.in_(
                [ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN]
            )
        ).count()
        if active:
            raise ValueError("客人还有未完成的预订，无法删除")

        customer.is_active = False
        self.db.commit()
        self.db.refresh(customer)
        logger.info("Customer %s deactivated", customer.customer_code)
        return customer

    def ban_customer(self, customer_id: int, reason: str) -> Customer:
        """加入黑名单"""
        if not reason or not reason.strip():
            raise ValueError("加入黑名单必须提供原因")

        customer = self.get_customer(customer_id)
        if not customer:
            raise NotFoundError("客人不存在")

        customer.is_banned = True
        customer.ban_reason = reason.strip()
        self.db.commit()
        self.db.refresh(customer)
        logger.info("Customer %s banned: %s", customer.customer_code, customer.ban_reason)
        return customer

    def unban_customer(self, customer_id: int) -> Customer:
        """移出黑名单"""
        customer = self.get_customer(customer_id)
        if not customer:
            raise NotFoundError("客人不存在")

        customer.is_banned = False
        customer.ban_reason = None
        self.db.commit()
        self.db.refresh(customer)
        logger.info("Customer %s unbanned", customer.customer_code)
        return customer

    def quick_search(self, q: str, limit: int = 10) -> List[Customer]:
        """快速检索（至少 2 个字符，最多 10 条）"""
        if not q or len(q.strip()) < 2:
            return []
        condition = contains_any(
            q, Customer.first_name, Customer.last_name, Customer.phone,
            Customer.email, Customer.identity_number, Customer.customer_code
        )
        return self.db.query(Customer).filter(
            Customer.is_active == True, condition
        ).order_by(Customer.first_name).limit(min(limit, 10)).all()

    def validate_identity_number(self, identity_number: str,
                                 exclude_id: Optional[int] = None) -> dict:
        """证件号校验：是否已被登记"""
        query = self.db.query(Customer).filter(Customer.identity_number == identity_number.strip())
        if exclude_id:
            query = query.filter(Customer.id != exclude_id)
        existing = query.first()
        return {
            "identity_number": identity_number.strip(),
            "exists": existing is not None,
            "customer_id": existing.id if existing else None,
            "customer_name": existing.full_name if existing else None,
        }
