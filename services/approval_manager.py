# services/approval_manager.py
# -*- coding: utf-8 -*-
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List

from config import Settings
from database.models import DayOffStatus, RequestAction, Shift, User
from services.exceptions import (
    DateUnavailable, Forbidden, InvalidShift, NotFound, NotPending, ValidationError,
)
from utils.validators import month_bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Updated:
    request_id: int
    status: str


class ApprovalManager:
    """Действия администратора. Права проверяет вызывающий (по claims сессии)."""

    def __init__(self, settings: Settings, store):
        self.store = store
        self.shift_day_cap = settings.shift_day_cap

    # --- пользователи ---
    def approve_user(self, user_id: int, shift: str) -> User:
        if shift not in {s.value for s in Shift.working()}:
            raise InvalidShift()
        with self.store.transaction() as uow:
            user = uow.users.approve_user(user_id, shift)
        if user is None:
            # не найден и уже одобрен не различаем
            raise NotPending()
        logger.info(f"✅ Пользователь {user.id} одобрен на смену {user.shift}")
        return user

    def get_pending_users(self) -> List[User]:
        with self.store.transaction() as uow:
            return uow.users.get_pending_users()

    def get_all_users(self) -> List[User]:
        with self.store.transaction() as uow:
            return uow.users.get_all_users()

    def delete_user(self, admin_id: int, user_id: int) -> None:
        if admin_id == user_id:
            raise Forbidden("Admins cannot delete themselves.")
        with self.store.transaction() as uow:
            if not uow.users.delete_user(user_id):
                raise NotFound("User not found")
        logger.info(f"🗑 Пользователь {user_id} удалён администратором {admin_id}")

    # --- заявки ---
    def manage_day_off_request(self, request_id: int, action: str) -> Updated:
        try:
            action = RequestAction(action)
        except ValueError:
            raise ValidationError("Action must be 'approve' or 'reject'.")

        with self.store.transaction() as uow:
            found = uow.days_off.get_request_with_shift(request_id)
            if found is None:
                raise NotFound("Day off request not found.")

            if action is RequestAction.REJECT:
                uow.days_off.set_status(request_id, DayOffStatus.REJECTED.value)
                logger.info(f"Заявка #{request_id} отклонена")
                return Updated(request_id, DayOffStatus.REJECTED.value)

            request, shift = found
            # Сериализуем одобрения на (смену, дату), затем перечитываем под блокировкой
            uow.days_off.lock_shift_date(shift, request.date)
            found = uow.days_off.get_request_with_shift(request_id, for_update=True)
            if found is None:
                raise NotFound("Day off request not found.")
            request, shift = found
            if request.status == DayOffStatus.APPROVED.value:
                return Updated(request_id, request.status)
            if request.status == DayOffStatus.REJECTED.value:
                # отклонённая заявка не оживает через одобрение, только новым запросом
                raise ValidationError("Rejected day off request cannot be approved.")

            booked = uow.days_off.count_approved_for_shift(request.date, shift, exclude_id=request_id)
            if booked >= self.shift_day_cap:
                logger.warning(
                    f"Одобрение #{request_id} отклонено: {request.date} у смены {shift} уже {booked}"
                )
                raise DateUnavailable(request.date)

            uow.days_off.set_status(request_id, DayOffStatus.APPROVED.value)
        logger.info(f"✅ Заявка #{request_id} одобрена ({shift}, {request.date})")
        return Updated(request_id, DayOffStatus.APPROVED.value)

    # --- календарь администратора ---
    def get_calendar(self, year: int, month: int) -> Dict[date, Dict[str, int]]:
        first, last = month_bounds(year, month)
        with self.store.transaction() as uow:
            return uow.days_off.status_counts(first, last)

    def get_day_details(self, day: date) -> List[Dict[str, Any]]:
        with self.store.transaction() as uow:
            return uow.days_off.details_for_date(day)
