from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.workhub.workhub.container import build_container
from src.workhub.workhub.database.bootstrap import seed_demo_data
from src.workhub.workhub.main import configure_logging

logger = logging.getLogger("workhub.seed_db")


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=dict(settings.DB_CONFIG))

    if seed_demo_data(container.uow, container.registration_service):
        logger.info("Seeded demo data; sign in as admin@octavertex.com")
    else:
        logger.info("Nothing to do")


if __name__ == "__main__":
    main()
