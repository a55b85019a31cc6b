from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import TransientError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except (mysql.connector.InterfaceError, mysql.connector.OperationalError) as exc:
        raise TransientError("Database is unreachable, try again later") from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except (mysql.connector.InterfaceError, mysql.connector.OperationalError) as exc:
        conn.rollback()
        raise TransientError("Database connection lost, try again later") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def is_duplicate_key(exc: mysql.connector.Error) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
