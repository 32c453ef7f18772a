# database/store.py
import logging
from contextlib import contextmanager

from .connection import DatabaseConnection
from .days_off_repository import DaysOffRepository
from .repository import UserRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Репозитории, привязанные к одной транзакции"""

    def __init__(self, cur):
        self.users = UserRepository(cur)
        self.days_off = DaysOffRepository(cur)


class PostgresStore:
    def __init__(self, db: DatabaseConnection):
        self.db = db

    @contextmanager
    def transaction(self):
        with self.db.transaction() as cur:
            yield UnitOfWork(cur)

    def close(self):
        self.db.close()
