import os
import tempfile
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    env: str = "local"

    postgres_user: str = "storefront"
    postgres_password: str = "storefront"
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full SQLAlchemy URL, wins over the postgres_* parts when set
    sqlalchemy_url: Optional[str] = None

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    session_cookie_name: str = "sessionId"
    session_cookie_max_age: int = 60 * 60 * 24 * 30  # 30 days

    shipping_rate: float = 10.0
    tax_rate: float = 0.1

    order_number_prefix: str = "ORD"
    order_number_start: int = 1001

    media_backend: str = "local"  # local | r2
    uploads_dir: str = os.path.join(tempfile.gettempdir(), "storefront_uploads")
    uploads_url_prefix: str = "/uploads"

    r2_account_id: Optional[str] = None
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    r2_bucket_name: Optional[str] = None
    r2_public_base: Optional[str] = None

    log_level: str = "INFO"

    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    @property
    def database_url(self):
        if self.sqlalchemy_url:
            return self.sqlalchemy_url

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
