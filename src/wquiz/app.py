import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI

from .config import settings
from .database import TestStore, init_db
from .log_handler import SQLiteHandler
from .router import router
from .vocabulary import VocabularyManager


# --- Logging Setup ---
def setup_logging(db_path: Optional[str] = None):
    logger = logging.getLogger("wquiz")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()

    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    db_handler = SQLiteHandler(db_path)
    db_handler.setFormatter(formatter)
    logger.addHandler(db_handler)
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(app.state.store.db_path)
    app.state.vocab_manager.load_all()
    yield
    app.state.sessions.clear()


# --- App Factory ---
def create_app(db_path: Optional[str] = None, vocab_dir: Optional[str] = None) -> FastAPI:
    store = TestStore(db_path)
    setup_logging(store.db_path)
    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )
    app.state.store = store
    app.state.vocab_manager = VocabularyManager(vocab_dir or settings.VOCAB_DIR)
    app.state.sessions = {}

    app.include_router(router)

    return app
