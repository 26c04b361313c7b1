from decimal import Decimal
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings

# Public Razorpay test key, only good for non-production checkouts.
TEST_RAZORPAY_KEY_ID = "rzp_test_p3NOjXkxa50O3G"


class Settings(BaseSettings):
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "campus_dabba"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # Full URL wins over the postgres_* parts when set (tests use sqlite).
    database_url: Optional[str] = None

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    razorpay_key_id: str = TEST_RAZORPAY_KEY_ID
    razorpay_key_secret: str = ""
    razorpay_timeout_seconds: float = 10.0

    # Single source of truth for checkout tax. No delivery fee is charged.
    tax_percentage: Decimal = Decimal("18")
    currency: str = "INR"

    env: str = "local"
    log_level: str = "INFO"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def tax_rate(self) -> Decimal:
        return self.tax_percentage / Decimal("100")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
