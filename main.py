"""
Главный файл приложения FastAPI
"""
import logging

from fastapi import FastAPI, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.routers import materials_router
from app.database import get_db
from app.init_db import init_database
from app.models.material_models import StatsResponse, OkResponse
from app.services.material_service import get_basic_stats

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="EduBase4Teachers", debug=settings.DEBUG)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Обработчик HTTP исключений: всегда отвечаем JSON

    Args:
        request: HTTP запрос
        exc: HTTP исключение

    Returns:
        JSONResponse с полем detail
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.on_event("startup")
async def startup_event():
    """
    Инициализация БД при запуске приложения
    """
    try:
        init_database()
    except Exception as e:
        logger.warning(f"Ошибка при инициализации БД: {e}")


# Подключаем маршруты
app.include_router(materials_router.router)


@app.get("/api/health", response_model=OkResponse)
def health():
    """Проверка работоспособности"""
    return {"ok": True}


@app.get("/api/stats", response_model=StatsResponse)
def stats(db: Session = Depends(get_db)):
    """
    Общая статистика базы материалов

    Args:
        db: Сессия базы данных

    Returns:
        JSON с количеством пользователей, материалов, скачиваний и просмотров
    """
    return get_basic_stats(db)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
