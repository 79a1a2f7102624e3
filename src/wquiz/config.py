import os


class Settings:
    PROJECT_NAME: str = "wquiz"
    DEBUG: bool = False
    LOG_DIR: str = os.environ.get("WQUIZ_LOG_DIR", "log")
    LOG_FILE: str = "wquiz.log"
    DB_DIR: str = os.environ.get("WQUIZ_DB_DIR", "db")
    DB_FILE: str = "wquiz.db"
    VOCAB_DIR: str = os.environ.get("WQUIZ_VOCAB_DIR", "vocabulary")
    SESSION_COOKIE_NAME: str = "test_session_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()
