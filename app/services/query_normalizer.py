"""
Нормализация параметров запроса списка материалов

Все входные параметры приходят от клиента как есть. Функции модуля никогда
не выбрасывают исключений: некорректные значения заменяются значениями по
умолчанию или приводятся к допустимому диапазону.
"""
import enum
import math
import re
import unicodedata
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict

DEFAULT_LIMIT = 20
MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_OFFSET = 0
MAX_OFFSET = 10000
MAX_FILTER_LENGTH = 100
MAX_SEARCH_LENGTH = 200
MAX_SEARCH_TOKENS = 6
WILDCARD = "*"

# Все, кроме букв, цифр, "_" и "-"
_TOKEN_STRIP_RE = re.compile(r"[^\w-]+")
# Десятичное число только из ASCII-цифр: "12", "-3.5", ".5", "1e3"
_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_USER_ID_RE = re.compile(r"[0-9]+")


class SortMode(str, enum.Enum):
    """Режим сортировки списка материалов"""
    NEW = "new"
    POPULAR = "popular"
    RELEVANCE = "relevance"


class NormalizedQuery(BaseModel):
    """Проверенные и ограниченные параметры поиска материалов"""
    model_config = ConfigDict(frozen=True)

    search_term: str = ""
    fts_query: str = ""
    subject: Optional[str] = None
    grade: Optional[str] = None
    type: Optional[str] = None
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET
    sort_mode: SortMode = SortMode.NEW
    favorite_of_user_id: Optional[int] = None


def parse_clamped(value: Any, minimum: int, maximum: int, default: int) -> int:
    """
    Приводит значение к целому числу в диапазоне [minimum, maximum]

    Args:
        value: Исходное значение (строка, число или None)
        minimum: Нижняя граница
        maximum: Верхняя граница
        default: Значение для пустого или нечислового ввода

    Returns:
        int: Число в допустимом диапазоне
    """
    number = default
    if isinstance(value, bool) or value is None:
        number = default
    elif isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str) and _NUMBER_RE.fullmatch(value.strip()):
        number = float(value.strip())

    if isinstance(number, float):
        number = int(number) if math.isfinite(number) else default

    return min(max(number, minimum), maximum)


def truncate_text(value: Any, max_length: int) -> str:
    """Строковое представление значения, обрезанное до max_length символов"""
    if value is None:
        return ""
    return str(value)[:max_length]


def optional_filter(value: Any, max_length: int = MAX_FILTER_LENGTH) -> Optional[str]:
    """
    Значение фильтра по равенству; пустая строка означает отсутствие фильтра
    """
    text = truncate_text(value, max_length)
    return text or None


def parse_sort_mode(value: Any) -> SortMode:
    """Режим сортировки; любое неизвестное значение дает SortMode.NEW"""
    if isinstance(value, SortMode):
        return value
    try:
        return SortMode(str(value))
    except ValueError:
        return SortMode.NEW


def parse_user_id(value: Any) -> Optional[int]:
    """ID пользователя для фильтра избранного или None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _USER_ID_RE.fullmatch(value.strip()):
        return int(value.strip())
    return None


def tokenize_search_term(term: Any) -> Tuple[str, ...]:
    """
    Разбивает поисковую строку на безопасные токены

    Строка обрезается до MAX_SEARCH_LENGTH символов, приводится к NFC,
    из нее удаляются управляющие символы. Из каждого токена остаются только
    буквы, цифры, "_" и "-". Пустые токены отбрасываются, сохраняются
    первые MAX_SEARCH_TOKENS.

    Args:
        term: Поисковая строка

    Returns:
        Tuple[str, ...]: Токены в исходном порядке
    """
    text = unicodedata.normalize("NFC", truncate_text(term, MAX_SEARCH_LENGTH))
    text = "".join(ch for ch in text if unicodedata.category(ch) != "Cc")

    tokens = []
    for raw in text.split():
        token = _TOKEN_STRIP_RE.sub("", raw)
        if token:
            tokens.append(token)
        if len(tokens) == MAX_SEARCH_TOKENS:
            break
    return tuple(tokens)


def build_fts_query(term: Any) -> str:
    """
    Префиксный запрос к полнотекстовому индексу: "osm* lecture*"

    Returns:
        str: Запрос или пустая строка, если токенов не осталось
    """
    return " ".join(token + WILDCARD for token in tokenize_search_term(term))


def normalize_query(
    q: Any = None,
    subject: Any = None,
    grade: Any = None,
    type: Any = None,
    limit: Any = None,
    offset: Any = None,
    sort: Any = None,
    favorite_of_user_id: Any = None,
) -> NormalizedQuery:
    """
    Собирает NormalizedQuery из непроверенных параметров запроса

    Args:
        q: Поисковая строка
        subject: Предмет
        grade: Класс
        type: Тип материала
        limit: Размер страницы
        offset: Смещение
        sort: Режим сортировки
        favorite_of_user_id: Ограничить избранным этого пользователя

    Returns:
        NormalizedQuery: Нормализованный запрос
    """
    return NormalizedQuery(
        search_term=truncate_text(q, MAX_SEARCH_LENGTH),
        fts_query=build_fts_query(q),
        subject=optional_filter(subject),
        grade=optional_filter(grade),
        type=optional_filter(type),
        limit=parse_clamped(limit, MIN_LIMIT, MAX_LIMIT, DEFAULT_LIMIT),
        offset=parse_clamped(offset, DEFAULT_OFFSET, MAX_OFFSET, DEFAULT_OFFSET),
        sort_mode=parse_sort_mode(sort),
        favorite_of_user_id=parse_user_id(favorite_of_user_id),
    )
