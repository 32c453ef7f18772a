from .connection import DatabaseConnection
from .store import PostgresStore, UnitOfWork


def create_store(settings) -> PostgresStore:
    """Store поверх пула psycopg2; соединение открывается при первой транзакции"""
    return PostgresStore(DatabaseConnection(settings))


__all__ = ['DatabaseConnection', 'PostgresStore', 'UnitOfWork', 'create_store']
