from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL


class Settings(BaseSettings):
    """Settings for the scheduling core and its reference store."""

    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "clinisched"
    DB_PASS: str = Field(default="clinisched")
    DB_BASE: str = "clinisched"
    DB_ECHO: bool = False
    DB_SQLITE_PATH: str | None = Field(
        default=None,
        description="Use a local SQLite file instead of PostgreSQL",
    )

    # Booking slots
    SLOT_START_HOUR: int = Field(default=9, ge=0, le=23)
    SLOT_END_HOUR: int = Field(default=17, ge=1, le=24)
    SLOT_STEP_MINUTES: int = Field(default=30, gt=0)

    ENFORCE_TIME_ORDER: bool = Field(
        default=True,
        description="Reject schedule items whose start time is not before the end",
    )

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    @property
    def db_url(self) -> URL:
        """
        Assemble database URL from settings.

        :return: database URL.
        """
        if self.DB_SQLITE_PATH:
            return URL(f"sqlite+aiosqlite:///{self.DB_SQLITE_PATH}")
        return URL.build(
            scheme="postgresql+asyncpg",
            host=self.DB_HOST,
            port=self.DB_PORT,
            user=self.DB_USER,
            password=self.DB_PASS,
            path=f"/{self.DB_BASE}",
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
