"""
Утилиты для работы с JWT токенами

Токены выпускает внешний сервис авторизации; здесь они только проверяются.
В поле "sub" хранится ID пользователя.
"""
from datetime import datetime, timedelta
from typing import Optional, Annotated
from jose import JWTError, jwt
from fastapi import HTTPException, status, Header
from app.config import settings
from app.services.query_normalizer import parse_user_id


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None, **claims) -> str:
    """
    Создание JWT токена

    Args:
        user_id: ID пользователя
        expires_delta: Время жизни токена
        **claims: Дополнительные поля (name, is_admin)

    Returns:
        JWT токен
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(days=7))

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "iat": datetime.utcnow(),
        **claims
    }

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Декодирование JWT токена

    Args:
        token: JWT токен

    Returns:
        Payload токена или None
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def _user_from_authorization(authorization: Optional[str]) -> Optional[dict]:
    """Данные пользователя из заголовка "Authorization: Bearer <token>" или None"""
    if not authorization or not authorization.lower().startswith("bearer "):
        return None

    payload = decode_access_token(authorization[len("Bearer "):].strip())
    if payload is None:
        return None

    user_id = parse_user_id(payload.get("sub"))
    if user_id is None:
        return None

    return {
        "id": user_id,
        "name": payload.get("name"),
        "is_admin": bool(payload.get("is_admin", False))
    }


def get_current_user(
    authorization: Annotated[Optional[str], Header()] = None
) -> dict:
    """
    Получение текущего пользователя из токена

    Args:
        authorization: Заголовок Authorization

    Returns:
        Данные пользователя (id, name, is_admin)

    Raises:
        HTTPException: Если токен невалидный или отсутствует
    """
    user = _user_from_authorization(authorization)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Не удалось проверить учетные данные",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_user_optional(
    authorization: Annotated[Optional[str], Header()] = None
) -> Optional[dict]:
    """
    Получение текущего пользователя из токена (не выбрасывает исключение)

    Args:
        authorization: Заголовок Authorization

    Returns:
        Данные пользователя или None если не авторизован
    """
    return _user_from_authorization(authorization)
