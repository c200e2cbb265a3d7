import os
from dataclasses import dataclass
from pathlib import Path
import json
from typing import Optional


STOCK_POLICIES = {"decrement", "none"}


@dataclass
class AppConfig:
    database_url: str
    secret_key: str
    log_level: str
    currency: str
    stock_policy: str = "decrement"

    @property
    def commits_stock(self) -> bool:
        return self.stock_policy == "decrement"


def validate_currency(value: Optional[str]) -> str:
    v = (value or "USD").strip().upper()
    if len(v) != 3:
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def validate_stock_policy(value: Optional[str]) -> str:
    v = (value or "decrement").strip().lower()
    if v not in STOCK_POLICIES:
        raise ValueError(f"Invalid stock policy: {value!r}")
    return v


def _load_settings_file(path: Optional[Path] = None) -> dict:
    path = path or Path.cwd() / "data" / "settings.json"
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_env(settings_path: Optional[Path] = None) -> AppConfig:
    # data/settings.json wins, environment is the fallback
    s = _load_settings_file(settings_path)
    database_url = s.get("DATABASE_URL") or os.getenv("DATABASE_URL", "sqlite:///data/storefront.db")
    secret_key = os.getenv("SECRET_KEY", "dev_secret")
    log_level = (s.get("LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO")).upper()
    currency = validate_currency(s.get("CURRENCY") or os.getenv("CURRENCY"))
    stock_policy = validate_stock_policy(s.get("STOCK_POLICY") or os.getenv("STOCK_POLICY"))
    return AppConfig(
        database_url=database_url,
        secret_key=secret_key,
        log_level=log_level,
        currency=currency,
        stock_policy=stock_policy,
    )
