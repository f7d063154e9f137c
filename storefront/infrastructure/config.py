"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://decor:decor_dev_password@db:5432/decor_catalogue"
    create_tables_on_startup: bool = False

    # Authentication
    admin_api_key: str = "dev-admin-key-change-in-production"

    # Catalogue
    slug_locale: str = "fr"
    catalog_page_size: int = 20

    # Transactional email (Brevo)
    brevo_api_key: str | None = None
    brevo_base_url: str = "https://api.brevo.com/v3"
    brevo_sender_email: str = "info@example.com"
    brevo_sender_name: str = "Catalogue"
    brevo_admin_email: str = "logistique@example.com"
    email_timeout_seconds: float = 15.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
