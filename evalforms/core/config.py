from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "scout-evaluation-forms"
    LOG_LEVEL: str = "INFO"

    JWT_SECRET: str = "change_me_jwt"
    JWT_TTL_MINUTES: int = 240

    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    DATABASE_URL: str = "sqlite+pysqlite:///./evalforms.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    STUDENT_SEARCH_MIN_QUERY: int = 2
    STUDENT_SEARCH_DEFAULT_LIMIT: int = 20
    STUDENT_SEARCH_MAX_LIMIT: int = 100
    SUBMISSIONS_DEFAULT_LIMIT: int = 20
    SUBMISSIONS_MAX_LIMIT: int = 200
    NOTIFICATIONS_ENABLED: bool = True

    # Consumer side (evalforms.client)
    API_BASE_URL: str = "http://localhost:8000/api/evaluation-forms"
    CLIENT_TIMEOUT_SECONDS: float = 10.0
    CLIENT_CACHE_TTL_SECONDS: int = 300
    CLIENT_CACHE_BACKEND: str = "memory"  # memory | redis

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
