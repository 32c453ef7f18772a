# -*- coding: utf-8 -*-
from typing import List, Optional, Dict, Any
from datetime import date
import logging

from .models import DayOffRequest, DayOffStatus, ACTIVE_STATUSES

logger = logging.getLogger(__name__)

_REQUEST_COLUMNS = "id, user_id, date, status, created_at"


def _row_to_request(row) -> DayOffRequest:
    return DayOffRequest(id=row[0], user_id=row[1], date=row[2], status=row[3], created_at=row[4])


class DaysOffRepository:
    """Таблица days_off. Работает на курсоре уже открытой транзакции."""

    def __init__(self, cur):
        self.cur = cur

    # --- квоты ---
    def count_active_for_user(self, user_id: int) -> int:
        """Сколько у пользователя pending+approved заявок"""
        self.cur.execute("""
            SELECT COUNT(id) FROM days_off
            WHERE user_id = %s AND status IN %s
        """, (user_id, ACTIVE_STATUSES))
        return int(self.cur.fetchone()[0])

    def count_approved_for_shift(self, day: date, shift: str, exclude_id: Optional[int] = None) -> int:
        """Сколько одобренных выходных на дату среди пользователей смены"""
        sql = """
            SELECT COUNT(d.id)
            FROM days_off d
            JOIN users u ON u.id = d.user_id
            WHERE d.date = %s AND d.status = %s AND u.shift = %s
        """
        params = [day, DayOffStatus.APPROVED.value, shift]
        if exclude_id is not None:
            sql += " AND d.id <> %s"
            params.append(exclude_id)
        self.cur.execute(sql, params)
        return int(self.cur.fetchone()[0])

    def lock_shift_date(self, shift: str, day: date) -> None:
        """Транзакционный advisory-lock на пару (смена, дата); снимается на COMMIT/ROLLBACK."""
        self.cur.execute(
            "SELECT pg_advisory_xact_lock(hashtext(%s), %s)",
            (shift, day.toordinal()),
        )

    # --- запись ---
    def insert_pending(self, user_id: int, day: date) -> Optional[int]:
        """
        Вставляет pending-заявку. Отклонённая заявка на ту же дату оживает
        обратно в pending. None: дата уже занята активной заявкой.
        """
        self.cur.execute("""
            INSERT INTO days_off (user_id, date, status)
            VALUES (%s, %s, %s)
            ON CONFLICT (user_id, date) DO UPDATE SET
                status = EXCLUDED.status,
                created_at = NOW()
            WHERE days_off.status = %s
            RETURNING id
        """, (user_id, day, DayOffStatus.PENDING.value, DayOffStatus.REJECTED.value))
        row = self.cur.fetchone()
        return int(row[0]) if row else None

    def get_request_with_shift(self, request_id: int, for_update: bool = False):
        """(заявка, смена владельца) или None"""
        sql = """
            SELECT d.id, d.user_id, d.date, d.status, d.created_at, u.shift
            FROM days_off d
            JOIN users u ON u.id = d.user_id
            WHERE d.id = %s
        """
        if for_update:
            sql += " FOR UPDATE OF d"
        self.cur.execute(sql, (request_id,))
        row = self.cur.fetchone()
        if not row:
            return None
        return _row_to_request(row[:5]), row[5]

    def set_status(self, request_id: int, status: str) -> bool:
        self.cur.execute("UPDATE days_off SET status = %s WHERE id = %s", (status, request_id))
        return self.cur.rowcount > 0

    def delete_for_user(self, user_id: int, day: date) -> bool:
        """Пользователь отменяет свою активную заявку на дату"""
        self.cur.execute("""
            DELETE FROM days_off
            WHERE user_id = %s AND date = %s AND status IN %s
        """, (user_id, day, ACTIVE_STATUSES))
        return self.cur.rowcount > 0

    # --- выборки для календарей ---
    def list_for_user(self, user_id: int) -> List[DayOffRequest]:
        self.cur.execute(f"""
            SELECT {_REQUEST_COLUMNS} FROM days_off
            WHERE user_id = %s
            ORDER BY date ASC
        """, (user_id,))
        return [_row_to_request(r) for r in self.cur.fetchall()]

    def approved_counts_for_shift(self, shift: str, date_from: date, date_to: date) -> Dict[date, int]:
        """{дата: число одобренных} для смены в интервале [date_from, date_to]"""
        self.cur.execute("""
            SELECT d.date, COUNT(d.id)
            FROM days_off d
            JOIN users u ON u.id = d.user_id
            WHERE d.status = %s AND u.shift = %s
              AND d.date >= %s AND d.date <= %s
            GROUP BY d.date
        """, (DayOffStatus.APPROVED.value, shift, date_from, date_to))
        return {r[0]: int(r[1]) for r in self.cur.fetchall()}

    def status_counts(self, date_from: date, date_to: date) -> Dict[date, Dict[str, int]]:
        """{дата: {'pending': n, 'approved': m}} по всем сменам"""
        self.cur.execute("""
            SELECT date, status, COUNT(id)
            FROM days_off
            WHERE date >= %s AND date <= %s AND status IN %s
            GROUP BY date, status
        """, (date_from, date_to, ACTIVE_STATUSES))
        out: Dict[date, Dict[str, int]] = {}
        for day, status, count in self.cur.fetchall():
            bucket = out.setdefault(day, {s: 0 for s in ACTIVE_STATUSES})
            bucket[status] = int(count)
        return out

    def details_for_date(self, day: date) -> List[Dict[str, Any]]:
        """Все активные заявки на дату с данными пользователя"""
        self.cur.execute("""
            SELECT d.id, d.user_id, d.status, u.first_name, u.last_name, u.username, u.shift
            FROM days_off d
            JOIN users u ON u.id = d.user_id
            WHERE d.date = %s AND d.status IN %s
            ORDER BY u.shift, d.created_at, d.id
        """, (day, ACTIVE_STATUSES))
        return [
            {
                "id": r[0], "user_id": r[1], "status": r[2],
                "first_name": r[3], "last_name": r[4], "username": r[5], "shift": r[6],
            }
            for r in self.cur.fetchall()
        ]
