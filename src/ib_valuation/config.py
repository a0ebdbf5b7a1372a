from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    EVM_SEED: int | None = None  # fixes synthetic peers / transactions / snapshots
    EVM_LOG_LEVEL: str = "WARNING"
    EVM_DATA_DIR: str = "data"  # where `evm sample` writes snapshots by default


def load_settings() -> Settings:
    return Settings()
