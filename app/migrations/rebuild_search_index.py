"""
Миграция: создание и перестроение полнотекстового индекса materials_fts

Нужна для баз, созданных до появления индекса, и для восстановления индекса
после ручного изменения таблицы materials.
"""
import sys
from app.database import engine
from app.services.search_index import rebuild_search_index


def rebuild(bind=None) -> bool:
    """Перестроение индекса материалов"""
    try:
        count = rebuild_search_index(bind or engine)
        print(f"Проиндексировано материалов: {count}")
        print("Миграция завершена успешно!")
        return True

    except Exception as e:
        print(f"Ошибка при выполнении миграции: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    print("Запуск перестроения полнотекстового индекса материалов...")
    success = rebuild()
    sys.exit(0 if success else 1)
