"""Application configuration using Pydantic Settings."""

import json
import logging
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def get_secret_from_aws(secret_arn: str, region: str = "") -> str:
    """Fetch a secret value from AWS Secrets Manager.

    Args:
        secret_arn: The ARN or name of the secret.
        region: Optional AWS region override.

    Returns:
        The secret value, or empty string if not found.
    """
    if not secret_arn:
        return ""

    try:
        client = boto3.client("secretsmanager", region_name=region or None)
        response = client.get_secret_value(SecretId=secret_arn)
        return response.get("SecretString", "")
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Failed to fetch secret {secret_arn}: {e}")
        return ""


def get_secret_json_from_aws(secret_arn: str, region: str = "") -> dict:
    """Fetch a JSON secret from AWS Secrets Manager.

    Both the application secret (JWT_SECRET, GOOGLE_CLIENT_ID, ...) and the
    database connection secret (host, port, url, ...) are stored as JSON.

    Returns:
        The decoded secret, or an empty dict if missing or malformed.
    """
    secret_string = get_secret_from_aws(secret_arn, region)
    if not secret_string:
        return {}

    try:
        data = json.loads(secret_string)
    except (json.JSONDecodeError, TypeError):
        return {}
    return data if isinstance(data, dict) else {}


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values come from the process environment or a local .env file.
    In ECS the task definition injects secrets directly as environment
    variables; the *_SECRET_ARN fallbacks cover other runtimes.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Queso"
    debug: bool = False
    environment: str = "development"

    # Server
    host: str = "127.0.0.1"
    port: int = 3000

    # CORS
    cors_origins: list[str] = ["*"]

    # Database
    database_url: str = ""
    database_secret_arn: str = ""  # AWS Secrets Manager ARN for DB connection

    # Application secrets bundle (JWT + OAuth credentials)
    app_secrets_arn: str = ""

    # JWT
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 24

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_url: str = "http://localhost:5173/api/auth/google/callback"
    google_auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    google_token_url: str = "https://oauth2.googleapis.com/token"
    google_userinfo_url: str = "https://www.googleapis.com/oauth2/v2/userinfo"
    oauth_state_ttl_seconds: int = 600

    # Frontend (redirect target after browser-based OAuth)
    frontend_url: str = "http://localhost:5173"

    # AWS Configuration
    aws_region: str = ""

    @property
    def resolved_database_url(self) -> str:
        """Get database URL, fetching from Secrets Manager if needed."""
        if self.database_url:
            return self.database_url
        if self.database_secret_arn:
            secret = get_secret_json_from_aws(self.database_secret_arn, self.aws_region)
            return secret.get("url", "")
        return ""

    def _app_secret(self, key: str) -> str:
        if not self.app_secrets_arn:
            return ""
        return get_secret_json_from_aws(self.app_secrets_arn, self.aws_region).get(key, "")

    @property
    def resolved_jwt_secret(self) -> str:
        """Get the JWT signing secret.

        Raises:
            ValueError: If not configured.
        """
        secret = self.jwt_secret or self._app_secret("JWT_SECRET")
        if not secret:
            raise ValueError("JWT_SECRET must be set")
        return secret

    @property
    def resolved_google_client_id(self) -> str:
        """Get Google OAuth client ID, falling back to the app secret."""
        return self.google_client_id or self._app_secret("GOOGLE_CLIENT_ID")

    @property
    def resolved_google_client_secret(self) -> str:
        """Get Google OAuth client secret, falling back to the app secret."""
        return self.google_client_secret or self._app_secret("GOOGLE_CLIENT_SECRET")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
