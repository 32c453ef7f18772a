import os
import secrets
import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from dotenv import load_dotenv

# Загружаем переменные окружения из .env файла
load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _parse_admin_ids(raw: str) -> FrozenSet[int]:
    """'123, 456,' -> frozenset({123, 456}); мусор пропускаем с предупреждением."""
    ids = set()
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.add(int(part))
        except ValueError:
            logger.warning(f"⚠️ Пропускаю некорректный admin id: {part!r}")
    return frozenset(ids)


@dataclass(frozen=True)
class Settings:
    # Database
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_name: str = "shiftdb"
    db_user: str = "shift_days_off"
    db_password: str = ""
    db_port: str = "5432"
    db_pool_min: int = 1
    db_pool_max: int = 10

    # Telegram / session
    bot_token: str = ""
    jwt_secret: str = field(default_factory=lambda: secrets.token_hex(32))
    session_ttl_seconds: int = 60 * 60 * 24 * 7
    cookie_secure: bool = True
    telegram_auth_max_age: int = 0

    # Admins
    admin_ids: FrozenSet[int] = frozenset()
    admin_default_shift: str = "Morning"

    # Days off
    max_days_off: int = 4
    shift_day_cap: int = 2

    # Logging / server
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    def is_admin_id(self, user_id) -> bool:
        try:
            return int(user_id) in self.admin_ids
        except (TypeError, ValueError):
            return False


def load_settings() -> Settings:
    """Собирает Settings из окружения. Вызывается один раз на процесс."""
    settings = Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        db_host=os.getenv("DB_HOST", "localhost"),
        db_name=os.getenv("DB_NAME", "shiftdb"),
        db_user=os.getenv("DB_USER", "shift_days_off"),
        db_password=os.getenv("DB_PASSWORD", ""),
        db_port=os.getenv("DB_PORT", "5432"),
        db_pool_min=_env_int("DB_POOL_MIN", 1),
        db_pool_max=_env_int("DB_POOL_MAX", 10),
        bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or os.getenv("BOT_TOKEN", ""),
        jwt_secret=os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY") or secrets.token_hex(32),
        cookie_secure=_env_bool("COOKIE_SECURE", True),
        telegram_auth_max_age=_env_int("TELEGRAM_AUTH_MAX_AGE", 0),
        admin_ids=_parse_admin_ids(os.getenv("ADMIN_TELEGRAM_ID") or os.getenv("DEFAULT_ADMIN_IDS", "")),
        admin_default_shift=os.getenv("ADMIN_DEFAULT_SHIFT", "Morning"),
        max_days_off=_env_int("MAX_DAYS_OFF", 4),
        shift_day_cap=_env_int("SHIFT_DAY_CAP", 2),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 8000),
    )

    # импорт здесь: пакет database сам импортирует config
    from database.models import Shift
    working = tuple(s.value for s in Shift.working())
    if settings.admin_default_shift not in working:
        raise ValueError(f"ADMIN_DEFAULT_SHIFT must be one of {working}")

    # Проверяем обязательные переменные
    if not settings.bot_token:
        logger.warning("⚠️  Внимание: TELEGRAM_BOT_TOKEN не найден, вход через Telegram работать не будет")
    if not (os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY")):
        logger.warning("⚠️  JWT_SECRET не задан: сессии не переживут перезапуск процесса")

    return settings
