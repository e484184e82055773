from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(str, Enum):
    DEV = "dev"
    HML = "hml"
    PROD = "prod"


class Settings(BaseSettings):
    APP_ENV: Env = Env.DEV
    DEBUG: bool = False

    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    DATABASE_URL: str

    ALLOWED_HOSTS: str = "localhost,127.0.0.1"

    # Fuso único de operação: datas/horas são "de parede" neste locale
    APP_TIMEZONE: str = "America/Bogota"

    # Cliente do painel (app/client)
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    API_TIMEOUT_SECONDS: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env.dev",
        env_file_encoding="utf-8",
    )


# cria instância global
settings = Settings()
