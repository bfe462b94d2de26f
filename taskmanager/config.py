from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  database_url: str = "postgresql+asyncpg://taskmanager:taskmanager@db:5432/taskmanager"
  app_secret: str = "dev-secret-change-me"
  app_version: str = "v2026-10-19"
  build_sha: str = "dev"
  api_docs_enabled: bool = True
  log_level: str = "INFO"

  access_token_ttl_minutes: int = 60 * 24

  # local: HS256 tokens issued by /api/auth (signed with app_secret)
  # public_key: identity-provider tokens checked against auth_public_key
  # unverified: trust the "sub" claim without any signature check (dev only)
  auth_mode: str = "local"
  auth_public_key: str | None = None
  auth_algorithms: str = "RS256"
  auth_issuer: str | None = None
  auth_audience: str | None = None

  cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
  trusted_hosts: str = "localhost,127.0.0.1,0.0.0.0,api,test"

  upload_dir: str = "uploads/images"
  max_image_bytes: int = 5 * 1024 * 1024
  allowed_image_types: str = "image/jpeg,image/jpg,image/png,image/gif,image/webp"

  seed_demo_data: bool = False

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

  def trusted_host_list(self) -> list[str]:
    return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]

  def allowed_image_type_set(self) -> set[str]:
    return {t.strip().lower() for t in self.allowed_image_types.split(",") if t.strip()}

  def auth_algorithm_list(self) -> list[str]:
    return [a.strip() for a in self.auth_algorithms.split(",") if a.strip()]


settings = Settings()
