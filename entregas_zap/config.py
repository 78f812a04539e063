"""Backend settings."""
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Supabase Postgres (postgres://... is normalized to asyncpg)
    database_url: str = ""
    debug: bool = False
    create_tables: bool = False

    # Supabase Storage for package photos
    supabase_url: str = ""
    supabase_service_key: str = ""
    storage_bucket: str = "Imagem Encomenda"
    storage_folder: str = "entregas"

    # Outbound notifications (buildings without their own webhook use this one)
    default_webhook_url: str = "https://webhook.fbzia.com.br/webhook/entregaszapnovo"
    webhook_timeout_seconds: float = 30.0

    # Pause between recipients of one batch
    send_delay_seconds: float = 1.0
    reminder_delay_seconds: float = 2.0
    broadcast_delay_seconds: float = 1.0

    # Dates in messages and day buckets in reports
    condo_timezone: str = "America/Sao_Paulo"

    allowed_origins: List[str] = [
        *[f"http://localhost:{port}" for port in range(3000, 3007)],
        *[f"http://127.0.0.1:{port}" for port in range(3000, 3007)],
    ]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
