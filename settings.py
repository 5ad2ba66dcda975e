import os

from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()  # Загружаем .env, если он есть

# Используем переменную окружения или текущую рабочую директорию
BASE_DIR = Path(os.getenv("WALKPAIRS_ROOT", os.getcwd())).resolve()


class Settings(BaseSettings):
    BASE_DIR: Path = BASE_DIR

    DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'walks.db'}")

    # Push-уведомления: firebase (FCM) или pushy
    PUSH_PROVIDER: str = os.getenv("PUSH_PROVIDER", "firebase")
    FIREBASE_CREDENTIALS_PATH: Path = BASE_DIR / os.getenv("FIREBASE_CREDENTIALS_PATH", "firebase-credentials.json")
    PUSHY_SECRET_KEY: str = os.getenv("PUSHY_SECRET_KEY", "")
    TOKENS_FILE: Path = BASE_DIR / os.getenv("TOKENS_FILE", "tokens.json")

    # Планировщик ротаций
    ROTATION_CHECK_INTERVAL_SECONDS: int = 300
    ROTATION_RETRY_COUNT: int = 3
    ROTATION_MAX_RETRY_SECONDS: int = 60
    WALK_PROCESS_TIMEOUT_SECONDS: float = 30.0
    NOTIFY_TIMEOUT_SECONDS: float = 30.0

    # Значения по умолчанию для новой прогулки
    DEFAULT_DURATION_MINUTES: int = 60
    DEFAULT_NUMBER_OF_ROTATIONS: int = 3

    LOG_DIR: Path = Path(os.getenv("LOG_DIR", "logs"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
