from __future__ import annotations

import importlib
import logging

from rozgar_payroll.config import get_settings_module
from rozgar_payroll.database.bootstrap import apply_schema, list_tables
from rozgar_payroll.database.connection import DatabaseConnection, DBConfig

logger = logging.getLogger("init_db")


def main() -> None:
    logging.basicConfig(level="INFO", format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    config = DBConfig.from_dict(settings.DB_CONFIG)
    conn = DatabaseConnection(config)

    apply_schema(conn)
    tables = list_tables(conn)
    logger.info("schema.sql applied to %s@%s:%s/%s (tables=%d)", config.user, config.host, config.port, config.database, len(tables))


if __name__ == "__main__":
    main()
