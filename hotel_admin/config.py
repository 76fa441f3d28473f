"""
应用配置
从环境变量 / .env 读取配置
"""
from typing import List
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "Hotel Admin"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./hotel_admin.db"

    # JWT 配置
    SECRET_KEY: str = "hotel-admin-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # 列表分页
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 200

    # 前台费用规则 (货币单位 CURRENCY)
    CURRENCY: str = "LKR"
    STANDARD_CHECKIN_TIME: str = "14:00"
    STANDARD_CHECKOUT_HOUR: int = 12
    EARLY_CHECKIN_FEE_PER_HOUR: int = 100
    LATE_CHECKIN_FEE_PER_DAY: int = 500
    LATE_CHECKOUT_FEE_PER_HOUR: int = 50

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
