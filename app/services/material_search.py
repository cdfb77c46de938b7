"""
Поиск материалов с фильтрами, ранжированием и пагинацией

Запрос собирается из списка типизированных фильтров (EqualsFilter,
TextMatchFilter, ExistsSubqueryFilter), каждый из которых добавляет себя
в SQLAlchemy Select. Порядок сортировки выбирается по таблице ORDER_BY.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from sqlalchemy import column, func, literal_column, select, table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from app.models.material_db_models import Favorite, Material
from app.models.user_db_models import User
from app.services.query_normalizer import WILDCARD, NormalizedQuery, SortMode
from app.services.search_index import FTS_TABLE

logger = logging.getLogger(__name__)

materials_fts = table(FTS_TABLE, column("rowid"))

# bm25() в FTS5 возвращает отрицательные значения, лучшее совпадение - минимальное
relevance_score = func.bm25(literal_column(FTS_TABLE))


class StorageError(Exception):
    """Ошибка выполнения запроса к хранилищу"""


class OrderingKey(str, enum.Enum):
    """Итоговый порядок сортировки после учета поисковой строки"""
    RELEVANCE = "relevance"
    POPULAR = "popular"
    NEW = "new"


ORDER_BY = {
    OrderingKey.RELEVANCE: (relevance_score.asc(), Material.created_at.desc(), Material.id.desc()),
    OrderingKey.POPULAR: (
        Material.downloads.desc(),
        Material.views.desc(),
        Material.created_at.desc(),
        Material.id.desc(),
    ),
    OrderingKey.NEW: (Material.created_at.desc(), Material.id.desc()),
}

EQUALS_FIELDS = {
    "subject": Material.subject,
    "grade": Material.grade,
    "type": Material.type,
}

EXISTS_RELATIONS = {
    "favorites": (Favorite.material_id, Favorite.user_id),
}


@dataclass(frozen=True)
class EqualsFilter:
    """Точное совпадение категориального поля"""
    field: str
    value: str

    def apply(self, stmt: Select) -> Select:
        if self.field not in EQUALS_FIELDS:
            raise ValueError(f"Неизвестное поле фильтра: {self.field}")
        return stmt.where(EQUALS_FIELDS[self.field] == self.value)


@dataclass(frozen=True)
class TextMatchFilter:
    """Совпадение с полнотекстовым индексом (query - выражение FTS5)"""
    query: str

    def apply(self, stmt: Select) -> Select:
        return stmt.join(materials_fts, materials_fts.c.rowid == Material.id).where(
            literal_column(FTS_TABLE).match(self.query)
        )


@dataclass(frozen=True)
class ExistsSubqueryFilter:
    """Существование связанной строки (например, материал в избранном у key)"""
    relation: str
    key: int

    def apply(self, stmt: Select) -> Select:
        if self.relation not in EXISTS_RELATIONS:
            raise ValueError(f"Неизвестная связь фильтра: {self.relation}")
        material_column, key_column = EXISTS_RELATIONS[self.relation]
        subquery = select(material_column).where(material_column == Material.id, key_column == self.key)
        return stmt.where(subquery.exists())


def to_match_expression(fts_query: str) -> str:
    """
    Переводит префиксный запрос "e-learning* osm*" в синтаксис FTS5

    Каждый токен берется в кавычки, чтобы дефис и другие символы не
    трактовались как операторы FTS5: '"e-learning"* "osm"*'. Токены без
    букв и цифр ("--", "__") токенизатор индекса не видит, они пропускаются.
    """
    terms = []
    for token in fts_query.split():
        prefix = token.endswith(WILDCARD)
        word = token[:-len(WILDCARD)] if prefix else token
        if not any(ch.isalnum() for ch in word):
            continue
        terms.append(f'"{word}"{WILDCARD}' if prefix else f'"{word}"')
    return " ".join(terms)


def build_filters(query: NormalizedQuery) -> list:
    """
    Активные фильтры запроса; все они объединяются через AND

    Args:
        query: Нормализованный запрос

    Returns:
        list: Фильтры в фиксированном порядке
    """
    filters = []
    for field in ("subject", "grade", "type"):
        value = getattr(query, field)
        if value:
            filters.append(EqualsFilter(field=field, value=value))
    match_expression = to_match_expression(query.fts_query)
    if match_expression:
        filters.append(TextMatchFilter(query=match_expression))
    if query.favorite_of_user_id is not None:
        filters.append(ExistsSubqueryFilter(relation="favorites", key=query.favorite_of_user_id))
    return filters


def resolve_ordering(query: NormalizedQuery) -> OrderingKey:
    """
    Выбирает порядок сортировки

    При активном полнотекстовом поиске режимы "relevance" и "new" сортируют
    по релевантности; "popular" всегда сортирует по скачиваниям и просмотрам.
    """
    if to_match_expression(query.fts_query) and query.sort_mode in (SortMode.RELEVANCE, SortMode.NEW):
        return OrderingKey.RELEVANCE
    if query.sort_mode == SortMode.POPULAR:
        return OrderingKey.POPULAR
    return OrderingKey.NEW


def build_search_statement(query: NormalizedQuery) -> Select:
    """
    Строит SELECT материалов с автором, фильтрами, сортировкой и пагинацией

    Args:
        query: Нормализованный запрос

    Returns:
        Select: Готовый к выполнению запрос
    """
    stmt = select(
        Material,
        User.name.label("author_name"),
        User.id.label("author_id"),
    ).join(User, User.id == Material.user_id)

    for search_filter in build_filters(query):
        stmt = search_filter.apply(stmt)

    return stmt.order_by(*ORDER_BY[resolve_ordering(query)]).limit(query.limit).offset(query.offset)


def material_to_dict(material: Material, author_name: str = None, author_id: int = None) -> Dict[str, Any]:
    """
    Преобразует материал в словарь для ответа API

    Args:
        material: Материал из БД
        author_name: Имя автора
        author_id: ID автора

    Returns:
        Dict[str, Any]: Материал в виде словаря
    """
    return {
        "id": material.id,
        "title": material.title,
        "subject": material.subject,
        "grade": material.grade,
        "type": material.type,
        "description": material.description,
        "link": material.link,
        "file_url": material.file_url,
        "file_name": material.file_name,
        "size": material.size,
        "mime_type": material.mime_type,
        "created_at": material.created_at.isoformat() if material.created_at else None,
        "views": material.views,
        "downloads": material.downloads,
        "author_name": author_name,
        "author_id": author_id,
    }


def search_materials(db: Session, query: NormalizedQuery) -> List[Dict[str, Any]]:
    """
    Возвращает страницу материалов по нормализованному запросу

    Args:
        db: Сессия базы данных
        query: Нормализованный запрос

    Returns:
        List[Dict[str, Any]]: До query.limit материалов с полями автора

    Raises:
        StorageError: Если запрос к БД завершился ошибкой
    """
    stmt = build_search_statement(query)
    try:
        rows = db.execute(stmt).all()
    except SQLAlchemyError as e:
        logger.error(f"Ошибка при поиске материалов: {e}")
        raise StorageError("Не удалось выполнить поиск материалов") from e

    logger.debug(
        f"Поиск материалов: q='{query.search_term}', fts='{query.fts_query}', "
        f"sort={query.sort_mode.value}, offset={query.offset}, найдено {len(rows)}"
    )
    return [material_to_dict(material, author_name, author_id) for material, author_name, author_id in rows]
