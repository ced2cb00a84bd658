# smis/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    database_url: str
    redis_url: str = 'redis://localhost:6379/0'
    jwt_secret_key: str

    app_name: str = 'SMIS API'
    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']

    # Auth
    jwt_algorithm: str = 'HS256'
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 12
    password_reset_expire_minutes: int = 60

    # Cache: "memory" keeps entries in-process, "redis" uses redis_url
    cache_backend: str = 'memory'
    cache_ttl: int = 300

    # Performance middleware
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window: int = 900
    # Only honour X-Forwarded-For when a reverse proxy sets it
    trust_proxy_headers: bool = False
    max_request_size: int = 10 * 1024 * 1024
    slow_request_threshold: float = 1.0
    compression_min_size: int = 1024

    # Outgoing mail, disabled while smtp_host is unset
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    mail_from: str = 'noreply@smis.local'
    frontend_url: str = 'http://localhost:3000'

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }

settings = Settings()
