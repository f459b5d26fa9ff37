"""
Settings — JSON config file at ~/.conference-checkout/config.json, overridden by
CHECKOUT_* environment variables.
"""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from conference_checkout.transport.http import DEFAULT_BASE_URL

CONFIG_FILE = Path.home() / ".conference-checkout" / "config.json"

ENV_OVERRIDES = {
    "CHECKOUT_BASE_URL": "base_url",
    "CHECKOUT_RETURN_URL": "return_url",
    "CHECKOUT_CALLBACK_URL": "callback_url",
    "CHECKOUT_LOCALE": "locale",
}


class CheckoutSettings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    return_url: str = ""
    callback_url: str = ""
    locale: str = "en"
    timeout: float = 30.0
    availability_ttl: float = 30.0
    watchdog_interval: float = 10.0
    description_prefix: str = "Conference Registration"


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    try:
        return json.loads((path or CONFIG_FILE).read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def save_config(cfg: dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))


def load_settings(path: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> CheckoutSettings:
    env = os.environ if env is None else env
    cfg = load_config(path)
    values = {k: v for k, v in cfg.items() if k in CheckoutSettings.model_fields}
    for var, field in ENV_OVERRIDES.items():
        if env.get(var):
            values[field] = env[var]
    return CheckoutSettings(**values)
