"""
Полнотекстовый индекс материалов (SQLite FTS5)

Индекс materials_fts хранит проекцию (title, description) каждого материала.
Это external-content таблица: текст берется из materials, rowid совпадает
с materials.id. Синхронизацию выполняют триггеры на вставку, удаление и
изменение title/description.
"""
import logging

from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

FTS_TABLE = "materials_fts"

SEARCH_INDEX_DDL = [
    f"""
    CREATE VIRTUAL TABLE IF NOT EXISTS {FTS_TABLE} USING fts5(
        title,
        description,
        content='materials',
        content_rowid='id',
        tokenize='unicode61 remove_diacritics 2'
    )
    """,
    f"""
    CREATE TRIGGER IF NOT EXISTS materials_fts_ai AFTER INSERT ON materials BEGIN
        INSERT INTO {FTS_TABLE}(rowid, title, description)
        VALUES (new.id, new.title, new.description);
    END
    """,
    f"""
    CREATE TRIGGER IF NOT EXISTS materials_fts_ad AFTER DELETE ON materials BEGIN
        INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, title, description)
        VALUES ('delete', old.id, old.title, old.description);
    END
    """,
    f"""
    CREATE TRIGGER IF NOT EXISTS materials_fts_au AFTER UPDATE OF title, description ON materials BEGIN
        INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, title, description)
        VALUES ('delete', old.id, old.title, old.description);
        INSERT INTO {FTS_TABLE}(rowid, title, description)
        VALUES (new.id, new.title, new.description);
    END
    """,
]


def create_search_index(bind: Engine):
    """
    Создает FTS5 таблицу и триггеры синхронизации (идемпотентно)

    Args:
        bind: Движок БД
    """
    with bind.begin() as connection:
        for statement in SEARCH_INDEX_DDL:
            connection.exec_driver_sql(statement)
    logger.debug("Полнотекстовый индекс %s готов", FTS_TABLE)


def rebuild_search_index(bind: Engine) -> int:
    """
    Полностью перестраивает индекс по текущему содержимому materials

    Args:
        bind: Движок БД

    Returns:
        int: Количество проиндексированных материалов
    """
    create_search_index(bind)
    with bind.begin() as connection:
        connection.exec_driver_sql(f"INSERT INTO {FTS_TABLE}({FTS_TABLE}) VALUES ('rebuild')")
        count = connection.exec_driver_sql("SELECT COUNT(*) FROM materials").scalar()
    logger.info("Индекс %s перестроен: %s материалов", FTS_TABLE, count)
    return count
