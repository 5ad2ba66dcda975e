# Справочник push-токенов пользователей: user_id -> [token, ...]
import json
import threading
from pathlib import Path
from typing import Dict, List, Optional

from infrastructure.logging.logger import setup_logger
from settings import settings

logger = setup_logger("push_tokens")

_lock = threading.Lock()


def _tokens_file(path: Optional[Path] = None) -> Path:
    return Path(path or settings.TOKENS_FILE).resolve()


def _load_tokens(path: Optional[Path] = None) -> Dict[str, List[str]]:
    tokens_file = _tokens_file(path)
    if not tokens_file.exists():
        return {}
    try:
        return json.loads(tokens_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read {tokens_file}: {e}")
        return {}


def _save_tokens(tokens: Dict[str, List[str]], path: Optional[Path] = None):
    tokens_file = _tokens_file(path)
    tokens_file.parent.mkdir(parents=True, exist_ok=True)
    tokens_file.write_text(json.dumps(tokens, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info(f"Saved tokens to {tokens_file}")


def save_device_token(user_id: str, token: str, path: Optional[Path] = None) -> bool:
    """Регистрирует токен устройства. False, если такой токен уже есть."""
    with _lock:
        tokens = _load_tokens(path)
        user_tokens = tokens.setdefault(user_id, [])
        if token in user_tokens:
            logger.info("Token already exists; skipping")
            return False
        user_tokens.append(token)
        _save_tokens(tokens, path)
        return True


def get_user_tokens(user_id: str, path: Optional[Path] = None) -> List[str]:
    return list(_load_tokens(path).get(user_id, []))
