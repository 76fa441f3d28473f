"""
列表视图工具
所有列表端点共用的搜索、排序、分页
"""
import math
from typing import Dict, List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Query
from hotel_admin.config import settings


def paginate(query: Query, page: int = 1, limit: Optional[int] = None) -> Tuple[List, dict]:
    """分页，返回 (当前页记录, 分页信息)"""
    page = max(1, page or 1)
    limit = limit or settings.DEFAULT_PAGE_SIZE
    limit = min(max(1, limit), settings.MAX_PAGE_SIZE)

    total_count = query.order_by(None).count()
    total_pages = math.ceil(total_count / limit) if total_count else 0
    items = query.offset((page - 1) * limit).limit(limit).all()

    return items, {
        "page": page,
        "limit": limit,
        "total_count": total_count,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


def apply_sort(query: Query, columns: Dict[str, object], sort_by: Optional[str],
               sort_order: Optional[str], default: str) -> Query:
    """按白名单列排序，未知列回退到默认列"""
    column = columns.get(sort_by) if sort_by else None
    if column is None:
        column = columns[default]
    if (sort_order or "desc").lower() == "asc":
        return query.order_by(column.asc())
    return query.order_by(column.desc())


def contains_any(term: Optional[str], *columns):
    """任一列包含关键字（不区分大小写）；空关键字返回 None"""
    if term is None or not term.strip():
        return None
    pattern = f"%{term.strip()}%"
    return or_(*[col.ilike(pattern) for col in columns])
