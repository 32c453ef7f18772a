# services/days_off_manager.py
# -*- coding: utf-8 -*-
"""
Приём заявок на выходные.

Проверка при подаче оптимистичная: лимит смены (SHIFT_DAY_CAP одобренных
на дату) считается только по 'approved', поэтому на одну дату может висеть
больше pending-заявок, чем реально одобрят. Окончательно лимит смены
держит ApprovalManager в момент одобрения.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from config import Settings
from database.models import DayOffRequest, Shift
from services.exceptions import (
    DateUnavailable, DuplicateDate, Forbidden, NotFound, QuotaExceeded, ValidationError,
)
from utils.validators import month_bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Committed:
    user_id: int
    request_ids: List[int]
    dates: List[date]


@dataclass(frozen=True)
class UserCalendar:
    shift_day_counts: Dict[date, int]
    my_days_off: List[DayOffRequest]


def _working_shift(shift: str) -> str:
    try:
        value = Shift(shift)
    except ValueError:
        raise ValidationError(f"Unknown shift: {shift!r}.")
    if not value.is_working:
        raise Forbidden("Forbidden: User is pending approval.")
    return value.value


class DaysOffManager:
    def __init__(self, settings: Settings, store):
        self.store = store
        self.max_days_off = settings.max_days_off
        self.shift_day_cap = settings.shift_day_cap

    def request_days_off(self, user_id: int, shift: str, dates: Iterable[date]) -> Committed:
        """
        Всё или ничего: квота пользователя, лимит смены по каждой дате,
        уникальность (пользователь, дата). Любая ошибка откатывает всю пачку.
        """
        shift = _working_shift(shift)
        wanted = sorted(set(dates))
        if not wanted:
            raise ValidationError("An array of dates is required.")

        with self.store.transaction() as uow:
            # Блокируем строку пользователя: параллельные пачки одного
            # пользователя проходят проверку квоты по очереди
            if uow.users.get_user(user_id, for_update=True) is None:
                raise NotFound("User not found")

            current = uow.days_off.count_active_for_user(user_id)
            if current + len(wanted) > self.max_days_off:
                logger.info(f"Квота: user_id={user_id} уже {current}, просит ещё {len(wanted)}")
                raise QuotaExceeded(current, self.max_days_off)

            created = []
            for day in wanted:
                booked = uow.days_off.count_approved_for_shift(day, shift)
                if booked >= self.shift_day_cap:
                    logger.info(f"Дата {day} занята для смены {shift} ({booked} одобрено)")
                    raise DateUnavailable(day)
                request_id = uow.days_off.insert_pending(user_id, day)
                if request_id is None:
                    raise DuplicateDate(day)
                created.append(request_id)

        logger.info(f"✅ Заявки на выходные: user_id={user_id} даты={[d.isoformat() for d in wanted]}")
        return Committed(user_id=user_id, request_ids=created, dates=wanted)

    def cancel_day_off(self, user_id: int, shift: str, day: date) -> None:
        """Пользователь снимает свою pending/approved заявку; квота освобождается."""
        _working_shift(shift)
        with self.store.transaction() as uow:
            if not uow.days_off.delete_for_user(user_id, day):
                raise NotFound(f"No day off request for {day.isoformat()}.")
        logger.info(f"Заявка отменена: user_id={user_id} дата={day}")

    def get_calendar(self, user_id: int, shift: str, year: int, month: int) -> UserCalendar:
        shift = _working_shift(shift)
        first, last = month_bounds(year, month)
        with self.store.transaction() as uow:
            counts = uow.days_off.approved_counts_for_shift(shift, first, last)
            mine = uow.days_off.list_for_user(user_id)
        return UserCalendar(shift_day_counts=counts, my_days_off=mine)
