# services/session_auth.py
# -*- coding: utf-8 -*-
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from config import Settings
from database.models import User, Shift

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"
JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Claims:
    user_id: int
    shift: str
    is_admin: bool

    @property
    def is_pending(self) -> bool:
        return self.shift == Shift.PENDING.value


class SessionAuthenticator:
    """Подписывает и проверяет токен сессии из cookie 'session'."""

    def __init__(self, settings: Settings):
        self.secret = settings.jwt_secret
        self.ttl = timedelta(seconds=settings.session_ttl_seconds)

    def issue(self, user: User, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "userId": user.id,
            "shift": user.shift,
            "isAdmin": bool(user.is_admin),
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def authenticate(self, token: Optional[str]) -> Optional[Claims]:
        """Claims или None (нет токена / битая подпись / истёк). Никогда не бросает."""
        if not token:
            return None
        try:
            data = jwt.decode(
                token, self.secret, algorithms=[JWT_ALGORITHM],
                options={"require": ["exp"]},
            )
            return Claims(
                user_id=int(data["userId"]),
                shift=str(data["shift"]),
                is_admin=bool(data.get("isAdmin", False)),
            )
        except jwt.ExpiredSignatureError:
            logger.info("Сессия истекла")
            return None
        except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Отклонён токен сессии: {e}")
            return None
