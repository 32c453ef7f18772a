# database/connection.py
import logging
from contextlib import contextmanager

import psycopg2
from psycopg2.pool import ThreadedConnectionPool

from config import Settings
from services.exceptions import ShiftServiceError, StoreFailure

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Пул соединений с PostgreSQL.
    Каждый запрос берёт своё соединение через transaction() и обязательно
    возвращает его в пул, что бы ни случилось внутри.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        # ленивое подключение
        self.pool = None

    def _connect_kwargs(self) -> dict:
        if self.settings.database_url:
            return {"dsn": self.settings.database_url}
        return {
            "host": self.settings.db_host,
            "database": self.settings.db_name,
            "user": self.settings.db_user,
            "password": self.settings.db_password,
            "port": self.settings.db_port,
        }

    def connect(self) -> ThreadedConnectionPool:
        if self.pool is not None and not self.pool.closed:
            return self.pool
        try:
            self.pool = ThreadedConnectionPool(
                self.settings.db_pool_min,
                self.settings.db_pool_max,
                **self._connect_kwargs(),
            )
            logger.info("✅ Пул соединений с БД создан")
            return self.pool
        except psycopg2.Error as e:
            logger.error(f"❌ Ошибка подключения к БД: {e}")
            self.pool = None
            raise StoreFailure() from e

    @contextmanager
    def transaction(self):
        """
        Выдаёт курсор внутри одной транзакции.
        COMMIT при нормальном выходе, ROLLBACK при любом исключении,
        соединение возвращается в пул всегда.
        """
        pool = self.connect()
        try:
            conn = pool.getconn()
        except psycopg2.Error as e:
            logger.error(f"❌ Не удалось получить соединение из пула: {e}")
            raise StoreFailure() from e

        broken = False
        try:
            conn.autocommit = False
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except ShiftServiceError:
            safe_rollback(conn)
            raise
        except psycopg2.Error as e:
            broken = not safe_rollback(conn)
            logger.error(f"❌ Ошибка БД, транзакция откатена: {e}")
            raise StoreFailure() from e
        except BaseException:
            broken = not safe_rollback(conn)
            raise
        finally:
            pool.putconn(conn, close=broken or bool(conn.closed))

    def close(self):
        if self.pool is not None and not self.pool.closed:
            self.pool.closeall()
            logger.info("🔌 Пул соединений с БД закрыт")
        self.pool = None


def safe_rollback(conn) -> bool:
    """Откат без исключений наружу. False, если соединение уже не спасти."""
    try:
        if conn and not conn.closed:
            conn.rollback()
            return True
    except psycopg2.Error as e:
        logger.error(f"❌ ROLLBACK не удался: {e}")
    return False
