from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional
from pathlib import Path

class Settings(BaseSettings):
    app_name: str = Field(default="Galaxy Airlines API", alias="APP_NAME")
    env: str = Field(default="dev", alias="ENV")
    secret_key: str = Field(default="devsecret", alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    database_url: str = Field(default="sqlite:///./galaxyair.db", alias="DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    # Raw env values (strings), we parse them to lists via properties to avoid JSON decoding errors
    admin_emails_raw: Optional[str] = Field(default=None, alias="ADMIN_EMAILS")
    cors_origins_raw: Optional[str] = Field(default=None, alias="CORS_ORIGINS", description="Comma or space separated list of allowed CORS origins")
    payment_decline_cards_raw: Optional[str] = Field(default=None, alias="PAYMENT_DECLINE_CARDS")
    # Catalog search: one retry with a short backoff before giving up
    catalog_retry_attempts: int = Field(default=1, ge=0, alias="CATALOG_RETRY_ATTEMPTS")
    catalog_retry_backoff_seconds: float = Field(default=0.25, ge=0, alias="CATALOG_RETRY_BACKOFF_SECONDS")
    # Seed users and flights (dev/demo convenience)
    seed_admin_email: Optional[str] = Field(default=None, alias="SEED_ADMIN_EMAIL")
    seed_admin_password: Optional[str] = Field(default=None, alias="SEED_ADMIN_PASSWORD")
    seed_demo_email: Optional[str] = Field(default=None, alias="SEED_DEMO_EMAIL")
    seed_demo_password: Optional[str] = Field(default=None, alias="SEED_DEMO_PASSWORD")
    seed_sample_flights: bool = Field(default=True, alias="SEED_SAMPLE_FLIGHTS")

    class Config:
        # Load env from backend/.env regardless of CWD
        env_file = str(Path(__file__).resolve().parents[2] / ".env")
        case_sensitive = False
        populate_by_name = True

    def _parse_list(self, v: Optional[str]) -> List[str]:
        if v is None:
            return []
        s = v.strip()
        if not s:
            return []
        if s.startswith("[") and s.endswith("]"):
            try:
                import json
                loaded = json.loads(s)
                if isinstance(loaded, list):
                    return [str(e).strip() for e in loaded if str(e).strip()]
            except ValueError:
                pass
        return [e.strip() for e in s.replace(" ", ",").split(",") if e.strip()]

    @property
    def admin_emails(self) -> List[str]:
        return [e.lower() for e in self._parse_list(self.admin_emails_raw)]

    @property
    def payment_decline_cards(self) -> List[str]:
        items = self._parse_list(self.payment_decline_cards_raw)
        if not items:
            return ["4000000000000002"]
        return items

    @property
    def cors_origins(self) -> List[str]:
        items = self._parse_list(self.cors_origins_raw)
        # Fallback dev defaults if none provided
        if not items:
            return ["http://localhost:5173", "http://127.0.0.1:5173"]
        # Dev convenience: ensure both localhost and 127.0.0.1 variants for same ports
        augmented = set(items)
        for origin in list(items):
            if origin.startswith("http://localhost:"):
                port = origin.rsplit(":", 1)[1]
                augmented.add(f"http://127.0.0.1:{port}")
            if origin.startswith("http://127.0.0.1:"):
                port = origin.rsplit(":", 1)[1]
                augmented.add(f"http://localhost:{port}")
        return list(augmented)

settings = Settings()  # type: ignore
