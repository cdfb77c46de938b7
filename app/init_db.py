"""
Скрипт инициализации БД
"""
import logging

from app.database import init_db, engine

logger = logging.getLogger(__name__)


def init_database(bind=None):
    """
    Создание таблиц и полнотекстового индекса материалов

    Args:
        bind: Движок БД (по умолчанию глобальный engine)
    """
    bind = bind or engine
    init_db(bind)
    logger.info(f"База данных инициализирована: {bind.url}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_database()
    print("✓ База данных инициализирована успешно!")
