# -*- coding: utf-8 -*-
"""
Ошибки сервиса выходных.

Каждое исключение несёт HTTP-код и сообщение, которое можно показать
клиенту как есть. Всё, что не является ShiftServiceError, считается
внутренней ошибкой и наружу не уходит.
"""
from datetime import date
from typing import Optional


class ShiftServiceError(Exception):
    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ShiftServiceError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ShiftServiceError):
    status_code = 403
    default_message = "Forbidden."


class InvalidSignature(ShiftServiceError):
    status_code = 403
    default_message = "Invalid hash."


class ValidationError(ShiftServiceError):
    status_code = 400
    default_message = "Invalid request."


class InvalidShift(ValidationError):
    default_message = "Invalid userId or shift provided."


class QuotaExceeded(ValidationError):
    def __init__(self, current_count: int, limit: int = 4):
        self.current_count = current_count
        self.limit = limit
        super().__init__(
            f"You can only have up to {limit} days off. You currently have {current_count}."
        )


class DateUnavailable(ValidationError):
    def __init__(self, day: date):
        self.day = day
        super().__init__(
            f"Cannot request {day.isoformat()} as it is already fully booked for your shift."
        )


class DuplicateDate(ValidationError):
    def __init__(self, day: date):
        self.day = day
        super().__init__(f"You have already requested {day.isoformat()}.")


class NotFound(ShiftServiceError):
    status_code = 404
    default_message = "Not found."


class NotPending(NotFound):
    default_message = "User not found or was not pending approval."


class MethodNotAllowed(ShiftServiceError):
    status_code = 405
    default_message = "Method Not Allowed"


class StoreFailure(ShiftServiceError):
    status_code = 500
    default_message = "Server Error"
