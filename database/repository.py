import logging
from typing import List, Optional

from .models import User, Shift

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, first_name, last_name, username, shift, is_admin, created_at"


def _row_to_user(row) -> User:
    return User(
        id=row[0], first_name=row[1], last_name=row[2], username=row[3],
        shift=row[4], is_admin=bool(row[5]), created_at=row[6],
    )


class UserRepository:
    """Таблица users. Работает на курсоре уже открытой транзакции."""

    def __init__(self, cur):
        self.cur = cur

    def get_user(self, user_id: int, for_update: bool = False) -> Optional[User]:
        """Получает пользователя по Telegram id"""
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s"
        if for_update:
            sql += " FOR UPDATE"
        self.cur.execute(sql, (user_id,))
        row = self.cur.fetchone()
        return _row_to_user(row) if row else None

    def upsert_user(self, user_id: int, first_name: Optional[str], last_name: Optional[str],
                    username: Optional[str], is_admin: bool, admin_shift: str) -> User:
        """
        Создаёт или обновляет пользователя одним запросом и сразу возвращает
        итоговую строку через RETURNING.

        Новый: смена admin_shift для админа, иначе 'pending'.
        Существующий: имя/username/is_admin перезаписываются всегда,
        смена меняется только если была 'pending' и пришёл админ.
        """
        initial_shift = admin_shift if is_admin else Shift.PENDING.value
        self.cur.execute(f"""
            INSERT INTO users (id, first_name, last_name, username, is_admin, shift)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
                first_name = EXCLUDED.first_name,
                last_name  = EXCLUDED.last_name,
                username   = EXCLUDED.username,
                is_admin   = EXCLUDED.is_admin,
                shift = CASE
                    WHEN users.shift = %s AND EXCLUDED.is_admin = TRUE THEN %s
                    ELSE users.shift
                END
            RETURNING {_USER_COLUMNS}
        """, (user_id, first_name, last_name, username, is_admin, initial_shift,
              Shift.PENDING.value, admin_shift))
        return _row_to_user(self.cur.fetchone())

    def approve_user(self, user_id: int, shift: str) -> Optional[User]:
        """Назначает смену ожидающему пользователю. None: не найден или уже не pending."""
        self.cur.execute(f"""
            UPDATE users SET shift = %s
            WHERE id = %s AND shift = %s
            RETURNING {_USER_COLUMNS}
        """, (shift, user_id, Shift.PENDING.value))
        row = self.cur.fetchone()
        return _row_to_user(row) if row else None

    def get_pending_users(self) -> List[User]:
        """Очередь на одобрение, старые заявки первыми"""
        self.cur.execute(f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE shift = %s
            ORDER BY created_at ASC, id ASC
        """, (Shift.PENDING.value,))
        return [_row_to_user(r) for r in self.cur.fetchall()]

    def get_all_users(self) -> List[User]:
        self.cur.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at DESC, id DESC")
        return [_row_to_user(r) for r in self.cur.fetchall()]

    def delete_user(self, user_id: int) -> bool:
        """Жёсткое удаление; заявки уходят каскадом (ON DELETE CASCADE)."""
        self.cur.execute("DELETE FROM users WHERE id = %s", (user_id,))
        return self.cur.rowcount > 0

