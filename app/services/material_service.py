"""
Сервис для работы с материалами в БД
"""
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.models.material_db_models import Material, MaterialFile, Favorite
from app.models.user_db_models import User
from app.services.material_search import material_to_dict
from typing import Optional, List, Dict, Any
import logging

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "subject", "grade", "type", "description", "link")


def create_material(db: Session, user_id: int, title: str, subject: str, grade: str, type: str,
                    description: Optional[str] = None, link: Optional[str] = None) -> Material:
    """
    Создать новый материал

    Args:
        db: Сессия базы данных
        user_id: ID автора
        title: Заголовок материала
        subject: Предмет
        grade: Класс
        type: Тип материала
        description: Описание
        link: Внешняя ссылка

    Returns:
        Material: Созданный материал
    """
    material = Material(
        user_id=user_id,
        title=title,
        subject=subject,
        grade=grade,
        type=type,
        description=description,
        link=link
    )
    db.add(material)
    db.commit()
    db.refresh(material)
    logger.info(f"Материал {material.id} создан пользователем {user_id}")
    return material


def get_material_by_id(db: Session, material_id: int) -> Optional[Material]:
    """
    Получить материал по ID

    Args:
        db: Сессия базы данных
        material_id: ID материала

    Returns:
        Optional[Material]: Материал или None
    """
    return db.query(Material).filter(Material.id == material_id).first()


def get_material_details(db: Session, material_id: int) -> Optional[Dict[str, Any]]:
    """
    Материал с полями автора в виде словаря для ответа API

    Args:
        db: Сессия базы данных
        material_id: ID материала

    Returns:
        Optional[Dict[str, Any]]: Материал или None
    """
    row = (
        db.query(Material, User.name, User.id)
        .join(User, User.id == Material.user_id)
        .filter(Material.id == material_id)
        .first()
    )
    if row is None:
        return None
    material, author_name, author_id = row
    return material_to_dict(material, author_name, author_id)


def update_material(db: Session, material: Material, **kwargs) -> Material:
    """
    Обновить материал

    Args:
        db: Сессия базы данных
        material: Материал для обновления
        **kwargs: Поля для обновления (лишние поля игнорируются)

    Returns:
        Material: Обновленный материал
    """
    for key, value in kwargs.items():
        if key in UPDATABLE_FIELDS:
            setattr(material, key, value)

    db.commit()
    db.refresh(material)
    return material


def delete_material(db: Session, material: Material) -> bool:
    """
    Удалить материал (вложения и избранное удаляются каскадно)

    Args:
        db: Сессия базы данных
        material: Материал для удаления

    Returns:
        bool: True если удаление успешно
    """
    material_id = material.id
    db.delete(material)
    db.commit()
    logger.info(f"Материал {material_id} удален")
    return True


def list_materials_by_user(db: Session, user_id: int) -> List[Dict[str, Any]]:
    """
    Материалы автора, новые первыми

    Args:
        db: Сессия базы данных
        user_id: ID автора

    Returns:
        List[Dict[str, Any]]: Материалы с полями автора
    """
    rows = (
        db.query(Material, User.name, User.id)
        .join(User, User.id == Material.user_id)
        .filter(Material.user_id == user_id)
        .order_by(Material.created_at.desc(), Material.id.desc())
        .all()
    )
    return [material_to_dict(material, author_name, author_id) for material, author_name, author_id in rows]


def list_files_by_material_ids(db: Session, material_ids: List[int]) -> List[MaterialFile]:
    """
    Вложения указанных материалов, новые первыми

    Args:
        db: Сессия базы данных
        material_ids: ID материалов

    Returns:
        List[MaterialFile]: Вложения
    """
    if not material_ids:
        return []
    return (
        db.query(MaterialFile)
        .filter(MaterialFile.material_id.in_(material_ids))
        .order_by(MaterialFile.created_at.desc(), MaterialFile.id.desc())
        .all()
    )


def file_to_dict(material_file: MaterialFile) -> Dict[str, Any]:
    """Вложение в виде словаря для ответа API"""
    return {
        "id": material_file.id,
        "material_id": material_file.material_id,
        "file_url": material_file.file_url,
        "file_name": material_file.file_name,
        "is_main": bool(material_file.is_main),
        "size": material_file.size,
        "mime_type": material_file.mime_type,
        "created_at": material_file.created_at.isoformat() if material_file.created_at else None
    }


def attach_files(db: Session, materials: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Добавляет к каждому материалу список вложений (поле attachments)

    Args:
        db: Сессия базы данных
        materials: Материалы в виде словарей

    Returns:
        List[Dict[str, Any]]: Те же материалы с вложениями, порядок сохраняется
    """
    files = list_files_by_material_ids(db, [m["id"] for m in materials])
    grouped: Dict[int, List[Dict[str, Any]]] = {}
    for material_file in files:
        grouped.setdefault(material_file.material_id, []).append(file_to_dict(material_file))
    return [{**m, "attachments": grouped.get(m["id"], [])} for m in materials]


def add_favorite(db: Session, user_id: int, material_id: int) -> Favorite:
    """
    Добавить материал в избранное (повторное добавление ничего не меняет)

    Args:
        db: Сессия базы данных
        user_id: ID пользователя
        material_id: ID материала

    Returns:
        Favorite: Запись избранного
    """
    favorite = db.get(Favorite, (user_id, material_id))
    if favorite:
        return favorite

    favorite = Favorite(user_id=user_id, material_id=material_id)
    db.add(favorite)
    db.commit()
    db.refresh(favorite)
    return favorite


def remove_favorite(db: Session, user_id: int, material_id: int) -> bool:
    """
    Убрать материал из избранного

    Returns:
        bool: True если запись была удалена
    """
    deleted = (
        db.query(Favorite)
        .filter(Favorite.user_id == user_id, Favorite.material_id == material_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


def increment_views(db: Session, material_id: int) -> bool:
    """Увеличить счетчик просмотров материала"""
    updated = (
        db.query(Material)
        .filter(Material.id == material_id)
        .update({Material.views: Material.views + 1}, synchronize_session=False)
    )
    db.commit()
    return updated > 0


def get_basic_stats(db: Session) -> Dict[str, int]:
    """
    Общая статистика базы материалов

    Returns:
        Dict[str, int]: Количество пользователей, материалов, скачиваний и просмотров
    """
    materials, downloads, views = db.query(
        func.count(Material.id),
        func.coalesce(func.sum(Material.downloads), 0),
        func.coalesce(func.sum(Material.views), 0)
    ).one()
    users = db.query(func.count(User.id)).scalar()
    return {
        "users": users,
        "materials": materials,
        "downloads": downloads,
        "views": views
    }
