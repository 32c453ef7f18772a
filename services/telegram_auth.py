# services/telegram_auth.py
# -*- coding: utf-8 -*-
"""
Вход через Telegram Login Widget.

Проверяем подпись виджета, заводим/обновляем пользователя и выдаём
сессию. Правила назначения смены:
  * новый админ (id в ADMIN_TELEGRAM_ID) сразу получает смену по умолчанию,
  * новый обычный пользователь ждёт одобрения ('pending'),
  * у существующих смена не трогается, кроме одного случая:
    пользователь всё ещё 'pending', а теперь он в списке админов.
"""
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from config import Settings
from database.models import User
from services.exceptions import InvalidSignature, ValidationError
from services.session_auth import SessionAuthenticator

logger = logging.getLogger(__name__)

HASH_FIELD = "hash"


@dataclass(frozen=True)
class SessionResult:
    user: User
    token: str
    max_age: int


def _field_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_check_string(payload: Mapping[str, Any]) -> str:
    """key=value по всем полям кроме hash, отсортировано по ключу, через \\n"""
    return "\n".join(
        f"{key}={_field_value(payload[key])}"
        for key in sorted(payload)
        if key != HASH_FIELD
    )


def compute_telegram_hash(payload: Mapping[str, Any], bot_token: str) -> str:
    secret_key = hashlib.sha256(bot_token.encode("utf-8")).digest()
    check_string = build_check_string(payload)
    return hmac.new(secret_key, check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_telegram_hash(payload: Mapping[str, Any], bot_token: str) -> bool:
    received = payload.get(HASH_FIELD)
    if not received or not isinstance(received, str) or not bot_token:
        return False
    expected = compute_telegram_hash(payload, bot_token)
    return hmac.compare_digest(expected.encode("ascii"), received.lower().encode("utf-8"))


class IdentityGateway:
    def __init__(self, settings: Settings, store, sessions: SessionAuthenticator):
        self.settings = settings
        self.store = store
        self.sessions = sessions

    def _check_freshness(self, payload: Mapping[str, Any], now: float) -> None:
        max_age = self.settings.telegram_auth_max_age
        if max_age <= 0:
            return
        try:
            auth_date = int(payload.get("auth_date"))
        except (TypeError, ValueError):
            raise InvalidSignature("Telegram login data has no auth_date.")
        if now - auth_date > max_age:
            raise InvalidSignature("Telegram login data is outdated.")

    def authenticate_external(self, payload: Dict[str, Any], now: Optional[float] = None) -> SessionResult:
        if not isinstance(payload, dict):
            raise ValidationError("Telegram login payload must be an object.")

        if not verify_telegram_hash(payload, self.settings.bot_token):
            logger.warning(f"❌ Неверная подпись Telegram для id={payload.get('id')!r}")
            raise InvalidSignature()

        self._check_freshness(payload, time.time() if now is None else now)

        try:
            user_id = int(payload["id"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError("Telegram login payload has no valid id.")

        is_admin = self.settings.is_admin_id(user_id)
        with self.store.transaction() as uow:
            user = uow.users.upsert_user(
                user_id,
                payload.get("first_name"),
                payload.get("last_name"),
                payload.get("username"),
                is_admin,
                self.settings.admin_default_shift,
            )

        token = self.sessions.issue(user)
        logger.info(f"✅ Вход через Telegram: user_id={user.id} shift={user.shift} admin={user.is_admin}")
        return SessionResult(user=user, token=token, max_age=self.settings.session_ttl_seconds)
