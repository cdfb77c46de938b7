"""
Pydantic модели запросов и ответов API материалов
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class MaterialCreate(BaseModel):
    """Модель для создания материала-ссылки"""
    title: str = Field(..., max_length=200)
    subject: str = Field(..., max_length=100)
    grade: str = Field(..., max_length=100)
    type: str = Field(..., max_length=100)
    link: str = Field(..., max_length=500)
    description: Optional[str] = Field(None, max_length=10000)

    @field_validator("title", "subject", "grade", "type", "link")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Проверка, что обязательное поле не пустое"""
        if not v.strip():
            raise ValueError("Поле не может быть пустым")
        return v.strip()


class MaterialUpdate(BaseModel):
    """Модель для обновления материала (передаются только изменяемые поля)"""
    title: Optional[str] = Field(None, max_length=200)
    subject: Optional[str] = Field(None, max_length=100)
    grade: Optional[str] = Field(None, max_length=100)
    type: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=10000)
    link: Optional[str] = Field(None, max_length=500)

    @field_validator("title", "subject", "grade", "type")
    @classmethod
    def required_not_blank(cls, v: Optional[str]) -> str:
        # Вызывается только для явно переданных значений
        if v is None or not v.strip():
            raise ValueError("Поле не может быть пустым")
        return v.strip()


class Attachment(BaseModel):
    """Вложение материала"""
    id: int
    material_id: int
    file_url: str
    file_name: str
    is_main: bool = False
    size: Optional[int] = None
    mime_type: Optional[str] = None
    created_at: Optional[str] = None


class MaterialResponse(BaseModel):
    """Материал с автором и вложениями"""
    id: int
    title: str
    subject: str
    grade: str
    type: str
    description: Optional[str] = None
    link: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    size: Optional[int] = None
    mime_type: Optional[str] = None
    created_at: Optional[str] = None
    views: int = 0
    downloads: int = 0
    author_name: Optional[str] = None
    author_id: Optional[int] = None
    attachments: list[Attachment] = []


class MaterialListResponse(BaseModel):
    """
    Страница материалов

    has_more вычисляется эвристически: страница заполнена полностью
    """
    materials: list[MaterialResponse]
    has_more: bool = False


class MaterialDetailResponse(BaseModel):
    """Один материал"""
    material: MaterialResponse


class AttachmentListResponse(BaseModel):
    """Вложения одного материала"""
    files: list[Attachment]


class StatsResponse(BaseModel):
    """Общая статистика"""
    users: int
    materials: int
    downloads: int
    views: int


class OkResponse(BaseModel):
    """Стандартный ответ об успешной операции"""
    ok: bool = True
