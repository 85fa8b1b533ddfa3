from pathlib import Path
from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Table Reservation System'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []  # add your frontend URL here

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',')]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'table_reservation'
    POSTGRES_PORT: int = 5432

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'

    # Connection pool
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30  # seconds
    DB_POOL_RECYCLE: int = 1800  # seconds
    DB_POOL_PRE_PING: bool = True

    # Atomic overlap-check-and-write retries (serialization failure, deadlock, lock timeout)
    DB_TX_MAX_RETRIES: int = 3
    DB_TX_RETRY_BASE_DELAY_SECONDS: float = 0.05

    # Reservation policy
    RESERVATION_LOCK_MINUTES: int = 20  # lock horizon before a reservation starts
    RESERVATION_MAX_HOURS: int = 12
    RESERVATION_START_EARLY_MINUTES: int = 15
    RESERVATION_BUFFER_BEFORE_MINUTES: int = 0  # turnover padding, 0 = pure half-open rule
    RESERVATION_BUFFER_AFTER_MINUTES: int = 0
    # Day boundaries of the table schedule and hour buckets of the analytics (IANA name)
    BUSINESS_TIMEZONE: str = 'UTC'

    # Background scheduler
    ENABLE_SCHEDULER: bool = True
    LOCK_SWEEP_INTERVAL_SECONDS: int = 300  # 5 minutes
    FULL_SYNC_INTERVAL_SECONDS: int = 900  # 15 minutes
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = 3600  # 1 hour


settings = Settings()  # type: ignore
