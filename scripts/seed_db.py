from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv

from config import get_settings_module
from workforce.database.bootstrap import apply_seed_sql, ensure_demo_users
from workforce.database.connection import DBConfig

logger = logging.getLogger("workforce.scripts.seed_db")


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    # seed.sql references the demo accounts, so they go first.
    ensure_demo_users(db_config)
    seed_path = Path(__file__).resolve().parents[1] / "database" / "seed.sql"
    apply_seed_sql(db_config, seed_path=seed_path)

    logger.info("OK: seeded database -> %s", DBConfig.from_mapping(db_config).describe())


if __name__ == "__main__":
    main()
