from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str
    JWT_SECRET: str = "CHANGE_ME"
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    ROOT_PATH: str = ""
    CORS_ORIGINS: list[str] = ["*"]

    SCHEDULER_ENABLED: bool = True
    OVERDUE_CHECK_INTERVAL_MINUTES: int = 30
    CHAT_POLL_INTERVAL_SECONDS: float = 1.0


settings = Settings()
