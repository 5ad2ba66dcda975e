import firebase_admin
from firebase_admin import credentials, messaging

from infrastructure.logging.logger import setup_logger
from settings import settings

logger = setup_logger("firebase")


def _ensure_app():
    """Инициализация firebase-admin (один раз на процесс)."""
    if not firebase_admin._apps:
        cred = credentials.Certificate(str(settings.FIREBASE_CREDENTIALS_PATH))
        firebase_admin.initialize_app(cred)
        logger.info(f"firebase-admin инициализирован ({settings.FIREBASE_CREDENTIALS_PATH})")


def send_push(token: str, title: str, body: str, data: dict | None = None):
    """
    HTTP v1 через firebase-admin.
    Возвращает message id; ошибки доставки пробрасываются вызывающему.
    """
    _ensure_app()

    message = messaging.Message(
        token=token,
        notification=messaging.Notification(title=title, body=body),
        data={k: str(v) for k, v in (data or {}).items()},
        android=messaging.AndroidConfig(
            priority="high",  # важно для фоновой доставки
        ),
    )
    return messaging.send(message)
