from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # --- DB ---
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = "guitar_school"
    # full URL wins over the DB_* parts (tests use sqlite)
    DATABASE_URL: str = ""

    # --- JWT ---
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # --- scheduling ---
    # "grade": only active classes of the same grade block a new session
    # "all": every active class blocks it
    CONFLICT_SCOPE: Literal["grade", "all"] = "grade"
    SCHEDULE_MAX_ATTEMPTS: int = 100

    DEFAULT_TEACHER_USERNAME: str = "teacher"
    DEFAULT_TEACHER_PASSWORD: str = "123456"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True
    )

    @property
    def sqlalchemy_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

settings = Settings()
