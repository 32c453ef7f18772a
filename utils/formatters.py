from datetime import date
from typing import Any, Dict, List

from database.models import DayOffRequest, User


def format_user(user: User) -> Dict[str, Any]:
    """Пользователь в виде, который ждёт фронтенд (camelCase)"""
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "username": user.username,
        "shift": user.shift,
        "isAdmin": user.is_admin,
    }


def format_pending_user(user: User) -> Dict[str, Any]:
    """Строка очереди на одобрение (поля как в таблице users)"""
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "username": user.username,
    }


def format_users_list(users: List[User]) -> List[Dict[str, Any]]:
    out = []
    for user in users:
        row = format_pending_user(user)
        row["shift"] = user.shift
        row["is_admin"] = user.is_admin
        row["created_at"] = user.created_at.isoformat() if user.created_at else None
        out.append(row)
    return out


def format_day_off(request: DayOffRequest) -> Dict[str, Any]:
    return {"date": request.date.isoformat(), "status": request.status}


def format_date_counts(counts: Dict[date, Any]) -> Dict[str, Any]:
    """{date: x} -> {'YYYY-MM-DD': x}, по возрастанию даты"""
    return {day.isoformat(): counts[day] for day in sorted(counts)}


def format_day_details(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "id": r["id"],
            "userId": r["user_id"],
            "first_name": r["first_name"],
            "last_name": r["last_name"],
            "username": r["username"],
            "shift": r["shift"],
            "status": r["status"],
        }
        for r in rows
    ]
