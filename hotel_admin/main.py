"""
酒店运营管理后台主应用入口
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from hotel_admin.config import settings
from hotel_admin.database import init_db
from hotel_admin.routers import (
    auth, floors, rooms, customers, reservations, booking_sources, promo_codes, hr, front_office
)

logger = logging.getLogger(__name__)


def configure_logging():
    """配置根日志"""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    configure_logging()
    init_db()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)

    yield


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description="酒店运营管理后台：房间、客人、预订、前台入住退房与人事",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(auth.router)
app.include_router(floors.router)
app.include_router(rooms.router)
app.include_router(customers.router)
app.include_router(reservations.router)
app.include_router(booking_sources.router)
app.include_router(promo_codes.router)
app.include_router(hr.router)
app.include_router(front_office.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}


def run_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """启动 API 服务"""
    import uvicorn

    if reload:
        uvicorn.run("hotel_admin.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server(reload=settings.DEBUG)
