"""
楼层服务
管理 Floor 与 FloorPlan 对象
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from hotel_admin.models.ontology import Floor, FloorPlan, Room
from hotel_admin.models.schemas import (
    FloorCreate, FloorUpdate, FloorPlanCreate, FloorPlanUpdate
)
from hotel_admin.services import NotFoundError

logger = logging.getLogger(__name__)


class FloorService:
    """楼层服务"""

    def __init__(self, db: Session):
        self.db = db

    # ============== 楼层 ==============

    def get_floors(self) -> List[Floor]:
        """获取楼层列表（按楼层号）"""
        return self.db.query(Floor).order_by(Floor.floor_number).all()

    def get_floor(self, floor_id: int) -> Optional[Floor]:
        return self.db.query(Floor).filter(Floor.id == floor_id).first()

    def get_floor_detail(self, floor: Floor) -> dict:
        return {
            "id": floor.id,
            "name": floor.name,
            "floor_number": floor.floor_number,
            "description": floor.description,
            "room_count": self.db.query(Room).filter(Room.floor_id == floor.id).count(),
            "created_at": floor.created_at,
        }

    def _check_number(self, floor_number: int, exclude_id: Optional[int] = None):
        query = self.db.query(Floor).filter(Floor.floor_number == floor_number)
        if exclude_id:
            query = query.filter(Floor.id != exclude_id)
        if query.first():
            raise ValueError(f"楼层号 {floor_number} 已存在")

    def create_floor(self, data: FloorCreate) -> Floor:
        """创建楼层"""
        self._check_number(data.floor_number)
        floor = Floor(**data.model_dump())
        self.db.add(floor)
        self.db.commit()
        self.db.refresh(floor)
        logger.info("Floor %s (%s) created", floor.floor_number, floor.name)
        return floor

    def update_floor(self, floor_id: int, data: FloorUpdate) -> Floor:
        """更新楼层"""
        floor = self.get_floor(floor_id)
        if not floor:
            raise NotFoundError("楼层不存在")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("floor_number") is not None:
            self._check_number(update_data["floor_number"], exclude_id=floor_id)
        if "name" in update_data and update_data["name"]:
            update_data["name"] = update_data["name"].strip()

        for key, value in update_data.items():
            if value is not None or key == "description":
                setattr(floor, key, value)

        self.db.commit()
        self.db.refresh(floor)
        return floor

    def delete_floor(self, floor_id: int) -> None:
        """删除楼层（有房间时拒绝）"""
        floor = self.get_floor(floor_id)
        if not floor:
            raise NotFoundError("楼层不存在")

        room_count = self.db.query(Room).filter(Room.floor_id == floor_id).count()
        if room_count:
            raise ValueError(f"楼层下还有 {room_count} 间房，无法删除")

        for plan in floor.plans:
            plan.floor_id = None
        self.db.delete(floor)
        self.db.commit()
        logger.info("Floor %s deleted", floor_id)

    # ============== 楼层规划 ==============

    def get_plans(self) -> List[FloorPlan]:
        """获取楼层规划列表"""
        return self.db.query(FloorPlan).order_by(FloorPlan.start_room_no).all()

    def get_plan(self, plan_id: int) -> Optional[FloorPlan]:
        return self.db.query(FloorPlan).filter(FloorPlan.id == plan_id).first()

    def _check_floor_ref(self, floor_id: Optional[int]):
        if floor_id is not None and not self.get_floor(floor_id):
            raise ValueError("楼层不存在")

    def create_plan(self, data: FloorPlanCreate) -> FloorPlan:
        """创建楼层规划"""
        self._check_floor_ref(data.floor_id)
        plan = FloorPlan(**data.model_dump())
        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)
        return plan

    def update_plan(self, plan_id: int, data: FloorPlanUpdate) -> FloorPlan:
        """更新楼层规划"""
        plan = self.get_plan(plan_id)
        if not plan:
            raise NotFoundError("楼层规划不存在")

        update_data = data.model_dump(exclude_unset=True)
        if "floor_id" in update_data:
            self._check_floor_ref(update_data["floor_id"])

        for key, value in update_data.items():
            if value is not None or key == "floor_id":
                setattr(plan, key, value)

        self.db.commit()
        self.db.refresh(plan)
        return plan

    def delete_plan(self, plan_id: int) -> None:
        """删除楼层规划"""
        plan = self.get_plan(plan_id)
        if not plan:
            raise NotFoundError("楼层规划不存在")
        self.db.delete(plan)
        self.db.commit()
