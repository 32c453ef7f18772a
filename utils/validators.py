import calendar
from datetime import date, datetime
from typing import Any, List, Tuple

from services.exceptions import ValidationError

DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y")


def parse_date(value: Any) -> date:
    """
    Парсит дату в форматах:
    - YYYY-MM-DD (так шлёт календарь)
    - DD.MM.YYYY
    """
    if not isinstance(value, str):
        raise ValidationError(f"Invalid date: {value!r}.")
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            pass
    raise ValidationError(f"Invalid date: {value!r}.")


def parse_date_list(value: Any) -> List[date]:
    """Непустой массив дат; повторы схлопываются, порядок по возрастанию"""
    if not isinstance(value, list) or not value:
        raise ValidationError("An array of dates is required.")
    return sorted({parse_date(v) for v in value})


def parse_id(value: Any, name: str = "id") -> int:
    # bool является подклассом int, его не принимаем
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name}.")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"Invalid {name}.")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}.")
    if parsed <= 0:
        raise ValidationError(f"Invalid {name}.")
    return parsed


def parse_month_year(month: Any, year: Any) -> Tuple[int, int]:
    if month in (None, "") or year in (None, ""):
        raise ValidationError("Month and year are required.")
    try:
        m, y = int(month), int(year)
    except (TypeError, ValueError):
        raise ValidationError("Month and year must be numbers.")
    if not 1 <= m <= 12 or not 1 <= y <= 9999:
        raise ValidationError("Month or year out of range.")
    return m, y


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Первый и последний день месяца"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
