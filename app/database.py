"""
Настройка базы данных SQLAlchemy
"""
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from app.config import settings

# Создаем движок БД
engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}
)

# Создаем фабрику сессий
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Базовый класс для моделей
Base = declarative_base()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """
    Включает проверку внешних ключей для каждого SQLite соединения
    (без нее не работает ON DELETE CASCADE)
    """
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db():
    """
    Dependency для получения сессии БД

    Yields:
        Session: Сессия базы данных
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None):
    """
    Инициализация БД - создание всех таблиц и полнотекстового индекса

    Args:
        bind: Движок БД (по умолчанию глобальный engine)
    """
    from app.models import user_db_models, material_db_models
    from app.services.search_index import create_search_index
    # Импортируем модели для регистрации в Base
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    create_search_index(bind)
