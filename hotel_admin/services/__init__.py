"""
业务服务层
服务抛出 ValueError 表示业务规则不满足，NotFoundError 表示对象不存在
"""


class NotFoundError(ValueError):
    """对象不存在"""
