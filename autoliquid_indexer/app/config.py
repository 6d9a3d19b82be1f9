"""Config file."""
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field("autoliquid-indexer", alias="PROJECT_NAME")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # DATABASE
    postgres_user: str = Field("postgres", alias="POSTGRES_USER")
    postgres_password: SecretStr = Field(SecretStr("postgres"), alias="POSTGRES_PASSWORD")
    postgres_server: str = Field("localhost", alias="POSTGRES_SERVER")
    postgres_port: int = Field(5432, alias="POSTGRES_PORT")
    postgres_db: str = Field("autoliquid-db", alias="POSTGRES_DB")
    database_url: str | None = Field(None, alias="DATABASE_URL")
    sync_database_url: str | None = Field(None, alias="SYNC_DATABASE_URL")

    # CHECKPOINT INGESTION
    remote_store_url: str = Field("https://checkpoints.mainnet.sui.io", alias="REMOTE_STORE_URL")
    checkpoints_path: str | None = Field(None, alias="CHECKPOINTS_PATH")
    start_checkpoint: int = Field(0, alias="START_CHECKPOINT", ge=0)
    concurrency: int = Field(2, alias="CONCURRENCY", gt=0)

    # BLUEFIN
    bluefin_package_id: str = Field(
        "0x6c796c3ab3421a68158e0df18e4657b2827b1f8fed5ed4b82dba9c935988711b",
        alias="BLUEFIN_PACKAGE_ID",
    )
    indexer_task_prefix: str = Field("BluefinIndexer", alias="INDEXER_TASK_PREFIX")
    progress_save_interval_seconds: float = Field(30.0, alias="PROGRESS_SAVE_INTERVAL_SECONDS", ge=0)

    # METRICS
    metrics_port: int = Field(9090, alias="METRICS_PORT")

    @model_validator(mode="after")
    def assemble_db_urls(self) -> "Settings":
        user = quote_plus(self.postgres_user)
        password = quote_plus(self.postgres_password.get_secret_value())
        host = self.postgres_server
        port = self.postgres_port
        db = quote_plus(self.postgres_db)

        if not self.database_url:
            self.database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

        if not self.sync_database_url:
            self.sync_database_url = f"postgresql://{user}:{password}@{host}:{port}/{db}"

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )


settings: Settings = Settings()
