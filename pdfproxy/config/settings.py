"""Runtime settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PDFPROXY_", extra="ignore")

    app_name: str = "pdfproxy"
    env: str = "dev"
    log_level: str = "info"
    host: str = "0.0.0.0"
    port: int = 3000

    # Endpoint path; a referer containing it is treated as self-referential.
    mount_path: str = "/proxy-pdf"
    default_accept: str = "application/pdf, */*"

    upstream_timeout_seconds: float = Field(default=60.0, gt=0.0)
    upstream_max_connections: int = 100
    upstream_max_keepalive_connections: int = 20
    upstream_follow_redirects: bool = True

    # Built viewer assets; empty disables static serving.
    static_dir: str = ""


settings = Settings()
