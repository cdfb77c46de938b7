"""
Конфигурация приложения
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Загружаем переменные окружения из .env файла
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings:
    """
    Настройки приложения

    Загружает конфигурацию из переменных окружения
    """

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./edubase.db")

    # Security (токены выпускает внешний сервис авторизации)
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")

    # Application
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    class Config:
        case_sensitive = True


# Создаем экземпляр настроек
settings = Settings()
