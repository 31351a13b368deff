import os


class Settings:
    PROJECT_NAME: str = "dailylect"
    DEBUG: bool = os.environ.get("DEBUG", "").lower() in ("1", "true", "yes")
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "dailylect.log"
    DB_DIR: str = os.environ.get("DB_DIR", "db")
    DB_FILE: str = "dailylect.db"
    DB_TIMEOUT_SECONDS: float = float(os.environ.get("DB_TIMEOUT_SECONDS", "5"))
    DB_LOGGING: bool = os.environ.get("DB_LOGGING", "").lower() in ("1", "true", "yes")
    STORAGE_BACKEND: str = os.environ.get("STORAGE_BACKEND", "sqlite")
    REDIS_URL: str = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    REDIS_TIMEOUT_SECONDS: float = float(os.environ.get("REDIS_TIMEOUT_SECONDS", "2"))
    CATALOG_DIR: str = os.environ.get(
        "CATALOG_DIR", os.path.join(os.path.dirname(__file__), "data")
    )
    QUIZ_SIZE: int = 10
    QUIZ_UNLOCK_DAYS: int = 7
    RECENT_QUIZ_LIMIT: int = 5
    SESSION_COOKIE_NAME: str = "quiz_session_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    USER_HEADER: str = "X-User-Id"
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()
