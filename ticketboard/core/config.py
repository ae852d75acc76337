from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Ticketboard"
    database_url: str = Field(
        default="sqlite+aiosqlite:///./ticketboard.db",
        description="SQLAlchemy database URL",
    )
    mysql_host: str | None = Field(
        default=None,
        description="MySQL host",
        validation_alias="TICKETBOARD_MYSQL_HOST",
    )
    mysql_port: int = Field(
        default=3306,
        description="MySQL port",
        validation_alias="TICKETBOARD_MYSQL_PORT",
    )
    mysql_username: str | None = Field(
        default=None,
        description="MySQL username",
        validation_alias="TICKETBOARD_MYSQL_USER",
    )
    mysql_password: str | None = Field(
        default=None,
        description="MySQL password",
        validation_alias="TICKETBOARD_MYSQL_PASSWORD",
    )
    mysql_database: str | None = Field(
        default=None,
        description="MySQL database name",
        validation_alias="TICKETBOARD_MYSQL_DATABASE",
    )
    notification_url: str | None = Field(
        default=None,
        description="Downstream automation endpoint notified when a ticket is reported",
        validation_alias="TICKETBOARD_NOTIFICATION_URL",
    )
    notification_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for the downstream notification call",
        validation_alias="TICKETBOARD_NOTIFICATION_TIMEOUT",
    )
    reported_status: str = Field(
        default="Reported",
        description="Ticket status that triggers the downstream notification",
        validation_alias="TICKETBOARD_REPORTED_STATUS",
    )

    @property
    def resolved_database_url(self) -> str:
        if all([self.mysql_host, self.mysql_username, self.mysql_password, self.mysql_database]):
            user = quote_plus(self.mysql_username)
            password = quote_plus(self.mysql_password)
            return (
                f"mysql+aiomysql://{user}:{password}@{self.mysql_host}:{self.mysql_port}/{self.mysql_database}"
            )
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
