from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv

from config import get_settings_module
from workforce.database.bootstrap import apply_schema, list_tables
from workforce.database.connection import DBConfig

logger = logging.getLogger("workforce.scripts.init_db")


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    schema_path = Path(__file__).resolve().parents[1] / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)
    tables = list_tables(db_config)
    logger.info("OK: applied schema.sql -> %s (tables=%s)", DBConfig.from_mapping(db_config).describe(), len(tables))


if __name__ == "__main__":
    main()
