# helpdesk/core/config.py
from typing import List, Union, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    # ==== Infrastructure ====
    database_url: str = "postgresql+asyncpg://app:app@db:5432/helpdesk"

    # ==== Security / Auth ====
    jwt_secret: str = "changeme"
    jwt_alg: str = "HS256"

    # access token lifetime, minutes
    jwt_expires_min: int = 60

    # ==== CORS ====
    # CORS_ORIGINS=http://localhost:5173,http://127.0.0.1:5173,...
    cors_origins: Union[str, List[str]] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    # ==== Registration policy ====
    allow_self_signup: bool = True

    # ==== Queries ====
    recent_days_default: int = 7

    # ==== Bootstrap admin / demo technician ====
    admin_email: str = "admin@example.com"
    admin_password: str = "ChangeMe123!"
    admin_first_name: str = "Admin"
    admin_last_name: str = "Helpdesk"
    create_demo_technician: bool = True
    technician_email: str = "tech@example.com"
    technician_password: str = "Tech12345!"

    # ==== Logging / environment ====
    env: str = "dev"          # dev|staging|prod
    log_level: str = "INFO"   # DEBUG|INFO|WARNING|ERROR
    log_json: bool = False    # one JSON object per line instead of plain text

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                try:
                    import json
                    parsed = json.loads(s)
                    return [str(i).strip() for i in parsed if str(i).strip()]
                except ValueError:
                    pass
            return [i.strip() for i in s.split(",") if i.strip()]
        return v

    @field_validator("recent_days_default")
    @classmethod
    def _check_recent_days(cls, v: int) -> int:
        if v < 0:
            raise ValueError("recent_days_default must be >= 0")
        return v


settings = Settings()
