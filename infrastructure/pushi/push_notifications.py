import requests

from infrastructure.logging.logger import setup_logger
from settings import settings

logger = setup_logger("pushy")

PUSHY_URL = "https://api.pushy.me/push"


def send_pushy_notification(token: str, title: str, body: str, data: dict | None = None):
    """Отправка уведомления через сервис Pushy (альтернатива FCM)."""
    logger.debug(f"Отправляю через Pushy API token={token[:12]}...")
    payload = {
        "to": token,  # Device token
        "notification": {
            "title": title,
            "body": body
        },
        "data": data or {}
    }

    response = requests.post(
        PUSHY_URL,
        params={"api_key": settings.PUSHY_SECRET_KEY},
        json=payload,
        timeout=10,
    )
    response.raise_for_status()
    return response.json().get("id")
