# -*- coding: utf-8 -*-
"""
Единая точка входа API: ?action=<имя>.

Имя действия превращается в Action, у каждого действия свой HTTP-метод и
свой обработчик; права проверяют декораторы из utils.decorators.
Модуль не зависит от веб-фреймворка: на входе ApiRequest, на выходе
ApiResponse, а Flask (main.py) только перекладывает их.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional

from config import Settings
from services.approval_manager import ApprovalManager
from services.days_off_manager import DaysOffManager
from services.exceptions import MethodNotAllowed, NotFound, ShiftServiceError, ValidationError
from services.session_auth import SESSION_COOKIE, Claims, SessionAuthenticator
from services.telegram_auth import IdentityGateway
from utils.decorators import require_admin, require_approved, require_session
from utils.formatters import (
    format_date_counts, format_day_details, format_day_off, format_pending_user,
    format_user, format_users_list,
)
from utils.validators import parse_date, parse_date_list, parse_id, parse_month_year

logger = logging.getLogger(__name__)


class Action(Enum):
    AUTH_TELEGRAM = "auth-telegram"
    LOGOUT = "logout"
    USER_INFO = "user-info"
    GET_CALENDAR = "get-calendar"
    REQUEST_DAYS_OFF = "request-days-off"
    CANCEL_DAY_OFF = "cancel-day-off"
    ADMIN_GET_PENDING = "admin-get-pending"
    ADMIN_GET_ALL_USERS = "admin-get-all-users"
    ADMIN_APPROVE_USER = "admin-approve-user"
    ADMIN_DELETE_USER = "admin-delete-user"
    ADMIN_MANAGE_REQUEST = "admin-manage-request"
    ADMIN_GET_CALENDAR = "admin-get-calendar"
    ADMIN_GET_DAY_DETAILS = "admin-get-day-details"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Action":
        try:
            return cls(raw)
        except ValueError:
            raise NotFound("Action not found")


@dataclass
class ApiRequest:
    method: str
    action: Optional[str]
    query: Mapping[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    cookies: Mapping[str, str] = field(default_factory=dict)
    claims: Optional[Claims] = None

    def json(self) -> Dict[str, Any]:
        if not self.body:
            return {}
        try:
            data = json.loads(self.body)
        except ValueError:
            raise ValidationError("Request body must be valid JSON.")
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object.")
        return data


@dataclass(frozen=True)
class SessionCookie:
    value: str
    max_age: int
    secure: bool
    name: str = SESSION_COOKIE


@dataclass
class ApiResponse:
    status: int
    body: Any
    set_cookie: Optional[SessionCookie] = None
    clear_cookie: bool = False


def _message(status: int, message: str) -> ApiResponse:
    return ApiResponse(status, {"message": message})


@dataclass
class Services:
    settings: Settings
    sessions: SessionAuthenticator
    identity: IdentityGateway
    days_off: DaysOffManager
    approvals: ApprovalManager
    store: Any


def build_services(settings: Settings, store) -> Services:
    sessions = SessionAuthenticator(settings)
    return Services(
        settings=settings,
        sessions=sessions,
        identity=IdentityGateway(settings, store, sessions),
        days_off=DaysOffManager(settings, store),
        approvals=ApprovalManager(settings, store),
        store=store,
    )


# === Обработчики ===

def auth_telegram(services: Services, request: ApiRequest) -> ApiResponse:
    result = services.identity.authenticate_external(request.json())
    user = result.user
    return ApiResponse(
        200,
        {"id": user.id, "firstName": user.first_name, "shift": user.shift, "isAdmin": user.is_admin},
        set_cookie=SessionCookie(result.token, result.max_age, services.settings.cookie_secure),
    )


def logout(services: Services, request: ApiRequest) -> ApiResponse:
    response = _message(200, "Logged out.")
    response.clear_cookie = True
    return response


@require_session
def user_info(services: Services, request: ApiRequest) -> ApiResponse:
    with services.store.transaction() as uow:
        user = uow.users.get_user(request.claims.user_id)
    if user is None:
        raise NotFound("User not found")
    return ApiResponse(200, {"user": format_user(user)})


@require_approved
def get_calendar(services: Services, request: ApiRequest) -> ApiResponse:
    month, year = parse_month_year(request.query.get("month"), request.query.get("year"))
    claims = request.claims
    cal = services.days_off.get_calendar(claims.user_id, claims.shift, year, month)
    return ApiResponse(200, {
        "shiftDayCounts": format_date_counts(cal.shift_day_counts),
        "myDaysOff": [format_day_off(r) for r in cal.my_days_off],
    })


@require_approved
def request_days_off(services: Services, request: ApiRequest) -> ApiResponse:
    dates = parse_date_list(request.json().get("dates"))
    claims = request.claims
    services.days_off.request_days_off(claims.user_id, claims.shift, dates)
    return _message(201, "Day off requests submitted successfully.")


@require_approved
def cancel_day_off(services: Services, request: ApiRequest) -> ApiResponse:
    day = parse_date(request.json().get("date"))
    claims = request.claims
    services.days_off.cancel_day_off(claims.user_id, claims.shift, day)
    return _message(200, f"Day off {day.isoformat()} cancelled")


@require_admin
def admin_get_pending(services: Services, request: ApiRequest) -> ApiResponse:
    return ApiResponse(200, [format_pending_user(u) for u in services.approvals.get_pending_users()])


@require_admin
def admin_get_all_users(services: Services, request: ApiRequest) -> ApiResponse:
    return ApiResponse(200, format_users_list(services.approvals.get_all_users()))


@require_admin
def admin_approve_user(services: Services, request: ApiRequest) -> ApiResponse:
    data = request.json()
    try:
        user_id = parse_id(data.get("userId"), "userId")
    except ValidationError:
        raise ValidationError("Invalid userId or shift provided.")
    user = services.approvals.approve_user(user_id, data.get("shift"))
    return _message(200, f"User {user.id} approved for {user.shift} shift.")


@require_admin
def admin_delete_user(services: Services, request: ApiRequest) -> ApiResponse:
    user_id = parse_id(request.json().get("userId"), "userId")
    services.approvals.delete_user(request.claims.user_id, user_id)
    return _message(200, f"User {user_id} deleted.")


@require_admin
def admin_manage_request(services: Services, request: ApiRequest) -> ApiResponse:
    data = request.json()
    raw_id = data.get("dayOffId", data.get("requestId"))
    request_id = parse_id(raw_id, "dayOffId")
    updated = services.approvals.manage_day_off_request(request_id, data.get("action"))
    return ApiResponse(200, {
        "message": f"Request {updated.request_id} {updated.status}.",
        "id": updated.request_id,
        "status": updated.status,
    })


@require_admin
def admin_get_calendar(services: Services, request: ApiRequest) -> ApiResponse:
    month, year = parse_month_year(request.query.get("month"), request.query.get("year"))
    return ApiResponse(200, format_date_counts(services.approvals.get_calendar(year, month)))


@require_admin
def admin_get_day_details(services: Services, request: ApiRequest) -> ApiResponse:
    day = parse_date(request.query.get("date"))
    return ApiResponse(200, format_day_details(services.approvals.get_day_details(day)))


class Route(NamedTuple):
    method: str
    handler: Callable[[Services, ApiRequest], ApiResponse]


ROUTES: Dict[Action, Route] = {
    Action.AUTH_TELEGRAM: Route("POST", auth_telegram),
    Action.LOGOUT: Route("POST", logout),
    Action.USER_INFO: Route("GET", user_info),
    Action.GET_CALENDAR: Route("GET", get_calendar),
    Action.REQUEST_DAYS_OFF: Route("POST", request_days_off),
    Action.CANCEL_DAY_OFF: Route("POST", cancel_day_off),
    Action.ADMIN_GET_PENDING: Route("GET", admin_get_pending),
    Action.ADMIN_GET_ALL_USERS: Route("GET", admin_get_all_users),
    Action.ADMIN_APPROVE_USER: Route("POST", admin_approve_user),
    Action.ADMIN_DELETE_USER: Route("POST", admin_delete_user),
    Action.ADMIN_MANAGE_REQUEST: Route("POST", admin_manage_request),
    Action.ADMIN_GET_CALENDAR: Route("GET", admin_get_calendar),
    Action.ADMIN_GET_DAY_DETAILS: Route("GET", admin_get_day_details),
}


def dispatch(services: Services, request: ApiRequest) -> ApiResponse:
    try:
        action = Action.parse(request.action)
        route = ROUTES[action]
        if request.method.upper() != route.method:
            raise MethodNotAllowed()
        if action is not Action.AUTH_TELEGRAM:
            request.claims = services.sessions.authenticate(request.cookies.get(SESSION_COOKIE))
        return route.handler(services, request)
    except ShiftServiceError as e:
        if e.status_code >= 500:
            logger.error(f"[API_ERROR] {request.action}: {e!r}")
        return _message(e.status_code, e.message)
    except Exception:
        logger.exception(f"[API_ERROR] {request.action}: необработанная ошибка")
        return _message(500, "Server Error")
