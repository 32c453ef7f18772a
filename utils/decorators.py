# utils/decorators.py
# -*- coding: utf-8 -*-
import functools
import logging
from typing import Callable

from services.exceptions import Forbidden, Unauthenticated

logger = logging.getLogger(__name__)


def require_session(func: Callable):
    """Нужна валидная сессия (request.claims заполняет диспетчер)"""
    @functools.wraps(func)
    def wrapper(services, request, *args, **kwargs):
        if request.claims is None:
            raise Unauthenticated()
        return func(services, request, *args, **kwargs)
    return wrapper


def require_admin(func: Callable):
    @functools.wraps(func)
    def wrapper(services, request, *args, **kwargs):
        claims = request.claims
        if claims is None:
            raise Unauthenticated()
        if not claims.is_admin:
            logger.warning(f"Отказано в админ-действии user_id={claims.user_id}")
            raise Forbidden("Forbidden: Admins only.")
        return func(services, request, *args, **kwargs)
    return wrapper


def require_approved(func: Callable):
    """Сессия есть и смена назначена (не 'pending')"""
    @functools.wraps(func)
    def wrapper(services, request, *args, **kwargs):
        claims = request.claims
        if claims is None:
            raise Unauthenticated()
        if claims.is_pending:
            raise Forbidden("Forbidden: User is pending approval.")
        return func(services, request, *args, **kwargs)
    return wrapper
