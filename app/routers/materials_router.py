"""
Роутер API материалов: список с поиском, создание и редактирование,
избранное, просмотры, вложения
"""
import logging
from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.material_models import (
    MaterialCreate,
    MaterialUpdate,
    MaterialDetailResponse,
    MaterialListResponse,
    AttachmentListResponse,
    OkResponse
)
from app.models.material_db_models import Material
from app.models.user_db_models import User
from app.services.auth import get_current_user, get_current_user_optional
from app.services.material_search import search_materials, StorageError
from app.services.material_service import (
    attach_files,
    create_material,
    update_material,
    delete_material,
    get_material_details,
    list_materials_by_user,
    list_files_by_material_ids,
    file_to_dict,
    get_material_by_id,
    add_favorite,
    remove_favorite,
    increment_views
)
from app.services.query_normalizer import normalize_query, NormalizedQuery, MAX_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/materials", tags=["materials"])

SERVER_ERROR_DETAIL = "Ошибка сервера"


def _server_error() -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": SERVER_ERROR_DETAIL})


def _material_detail(db: Session, material_id: int) -> dict:
    """Ответ с одним материалом, его автором и вложениями"""
    return {"material": attach_files(db, [get_material_details(db, material_id)])[0]}


def _editable_material(db: Session, material_id: int, current_user: dict) -> Material:
    """
    Материал, который текущий пользователь может изменять (автор или администратор)

    Raises:
        HTTPException: 404 если материал не найден, 403 если нет прав
    """
    material = get_material_by_id(db, material_id)
    if not material:
        raise HTTPException(status_code=404, detail="Материал не найден")
    if material.user_id != current_user["id"] and not current_user["is_admin"]:
        raise HTTPException(status_code=403, detail="Недостаточно прав для изменения материала")
    return material


def _material_page(db: Session, query: NormalizedQuery) -> dict:
    """
    Страница материалов с вложениями

    Raises:
        StorageError: Если поиск завершился ошибкой
        SQLAlchemyError: Если не удалось загрузить вложения
    """
    materials = attach_files(db, search_materials(db, query))
    return {"materials": materials, "has_more": len(materials) == query.limit}


@router.get("", response_model=MaterialListResponse)
def list_materials(
    q: Optional[str] = None,
    subject: Optional[str] = None,
    grade: Optional[str] = None,
    type: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    sort: Optional[str] = None,
    favorite: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Optional[dict] = Depends(get_current_user_optional)
):
    """
    Публичный список материалов с поиском, фильтрами и пагинацией

    Args:
        q: Поисковый запрос
        subject: Предмет
        grade: Класс
        type: Тип материала
        limit: Размер страницы (1-100, по умолчанию 20)
        offset: Смещение (0-10000)
        sort: new, popular или relevance
        favorite: "1" - только избранное текущего пользователя
        db: Сессия базы данных
        current_user: Текущий пользователь (опционально)

    Returns:
        JSON со списком материалов и признаком has_more
    """
    favorite_of_user_id = None
    if favorite == "1" and current_user:
        favorite_of_user_id = current_user["id"]

    query = normalize_query(
        q=q,
        subject=subject,
        grade=grade,
        type=type,
        limit=limit,
        offset=offset,
        sort=sort,
        favorite_of_user_id=favorite_of_user_id
    )

    try:
        return _material_page(db, query)
    except (StorageError, SQLAlchemyError) as e:
        logger.error(f"Ошибка при получении списка материалов: {e}")
        return _server_error()


@router.post("", response_model=MaterialDetailResponse, status_code=201)
def create_material_api(
    payload: MaterialCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Создание материала-ссылки

    Args:
        payload: Поля материала
        db: Сессия базы данных
        current_user: Текущий пользователь

    Returns:
        JSON с созданным материалом

    Raises:
        HTTPException: Если автора нет в базе
    """
    if not db.get(User, current_user["id"]):
        raise HTTPException(status_code=403, detail="Пользователь не найден")

    material = create_material(db, user_id=current_user["id"], **payload.model_dump())
    return _material_detail(db, material.id)


@router.get("/mine", response_model=MaterialListResponse)
def list_my_materials(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Материалы текущего пользователя

    Args:
        db: Сессия базы данных
        current_user: Текущий пользователь

    Returns:
        JSON со списком материалов
    """
    try:
        materials = attach_files(db, list_materials_by_user(db, current_user["id"]))
    except SQLAlchemyError as e:
        logger.error(f"Ошибка при получении материалов пользователя: {e}")
        return _server_error()
    return {"materials": materials}


@router.get("/favorites", response_model=MaterialListResponse)
def list_favorite_materials(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Избранные материалы текущего пользователя (не более 100, новые первыми)

    Args:
        db: Сессия базы данных
        current_user: Текущий пользователь

    Returns:
        JSON со списком материалов
    """
    query = normalize_query(favorite_of_user_id=current_user["id"], limit=MAX_LIMIT)
    try:
        return _material_page(db, query)
    except (StorageError, SQLAlchemyError) as e:
        logger.error(f"Ошибка при получении избранного: {e}")
        return _server_error()


@router.put("/{material_id}", response_model=MaterialDetailResponse)
def update_material_api(
    material_id: int,
    payload: MaterialUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Редактирование текстовых полей материала (автор или администратор)

    Args:
        material_id: ID материала
        payload: Изменяемые поля; не переданные поля не меняются
        db: Сессия базы данных
        current_user: Текущий пользователь

    Returns:
        JSON с обновленным материалом
    """
    material = _editable_material(db, material_id, current_user)
    update_material(db, material, **payload.model_dump(exclude_unset=True))
    return _material_detail(db, material_id)


@router.delete("/{material_id}", response_model=OkResponse)
def delete_material_api(
    material_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Удаление материала вместе с вложениями и отметками избранного

    Raises:
        HTTPException: Если материал не найден или нет прав
    """
    material = _editable_material(db, material_id, current_user)
    delete_material(db, material)
    return {"ok": True}


@router.post("/{material_id}/favorite", response_model=OkResponse)
def add_to_favorites(
    material_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Добавить материал в избранное

    Raises:
        HTTPException: Если материал не найден
    """
    if not get_material_by_id(db, material_id):
        raise HTTPException(status_code=404, detail="Материал не найден")
    add_favorite(db, current_user["id"], material_id)
    return {"ok": True}


@router.delete("/{material_id}/favorite", response_model=OkResponse)
def remove_from_favorites(
    material_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Убрать материал из избранного"""
    remove_favorite(db, current_user["id"], material_id)
    return {"ok": True}


@router.post("/{material_id}/view", response_model=OkResponse)
def register_view(
    material_id: int,
    db: Session = Depends(get_db)
):
    """
    Увеличить счетчик просмотров

    Raises:
        HTTPException: Если материал не найден
    """
    if not increment_views(db, material_id):
        raise HTTPException(status_code=404, detail="Материал не найден")
    return {"ok": True}


@router.get("/{material_id}/files", response_model=AttachmentListResponse)
def list_material_files(
    material_id: int,
    db: Session = Depends(get_db)
):
    """Вложения материала"""
    files = list_files_by_material_ids(db, [material_id])
    return {"files": [file_to_dict(f) for f in files]}
