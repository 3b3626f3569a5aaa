from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    APP_NAME: str = "GymBuddy API"
    CORS_ORIGINS: str = "*"
    DB_ECHO: bool = False

    # Directory store backend: "sql" persists documents, "memory" is process-local
    STORE_BACKEND: str = "sql"

    # Match creation strategy: "deterministic" (pair-keyed create-if-absent)
    # or "query" (query existing matches, then append)
    MATCH_STRATEGY: str = "deterministic"

    # Chat settings
    MAX_MESSAGE_LENGTH: int = 2000

    # Discovery feed
    DISCOVERY_PAGE_SIZE: int = 50

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
