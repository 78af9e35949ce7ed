from __future__ import annotations
import logging
import os
import yaml
from pathlib import Path
from typing import List
from pydantic import BaseModel

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parents[1] / "config" / "settings.yaml"

class AppConfig(BaseModel):
    name: str
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

class AuthConfig(BaseModel):
    # stand-in identity; real authentication is an external service
    demo_user_email: str
    demo_user_name: str = "Administrator"

class DBConfig(BaseModel):
    url: str

class UIConfig(BaseModel):
    page_size: int = 10
    page_size_options: List[int] = [10, 25, 50]
    search_debounce_ms: int = 300
    default_section_capacity: int = 30

class Settings(BaseModel):
    app: AppConfig
    auth: AuthConfig
    db: DBConfig
    ui: UIConfig = UIConfig()

    @property
    def debug(self) -> bool:
        return self.app.debug

def load_settings(path: str | Path | None = None) -> Settings:
    path = path or os.getenv("SCHOOL_ADMIN_SETTINGS") or DEFAULT_SETTINGS_PATH
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    db = dict(data.get("db") or {})
    if os.getenv("DATABASE_URL"):
        db["url"] = os.environ["DATABASE_URL"]
    return Settings(
        app=AppConfig(**data["app"]),
        auth=AuthConfig(**data["auth"]),
        db=DBConfig(**db),
        ui=UIConfig(**(data.get("ui") or {})),
    )

_logging_configured = False

def configure_logging(settings: Settings) -> None:
    """Apply the configured log level once per process (Streamlit reruns the script)."""
    global _logging_configured
    if _logging_configured:
        return
    logging.basicConfig(
        level=getattr(logging, settings.app.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _logging_configured = True
