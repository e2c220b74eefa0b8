from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for RPC functions guarded by RLS

    # App
    app_name: str = "farmops-access-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    company_header: str = "X-Company-Id"

    # Auth token cache
    auth_cache_ttl_sec: int = 60
    auth_cache_max_size: int = 500

    # Audit log query / dashboard defaults
    audit_default_limit: int = 50
    audit_max_limit: int = 500
    audit_page_size: int = 1000  # PostgREST max rows per request
    audit_stats_days: int = 30
    audit_timeline_days: int = 14
    audit_recent_limit: int = 5
    audit_top_users: int = 5

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
