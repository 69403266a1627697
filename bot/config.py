"""Configuration for the medicine analog bot."""

import math
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from pillintrip.client import DEFAULT_API_URL, DEFAULT_TIMEOUT

# Загружаем переменные из .env, если файл есть рядом с проектом
load_dotenv()

DEFAULT_MEDICINE_BASE_URL = "https://pillintrip.com/ru/medicine"


class ConfigError(RuntimeError):
    """Required setting is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    bot_token: str = field(repr=False)
    api_key: str = field(repr=False)
    home_country_id: int
    target_country_id: int
    api_url: str = DEFAULT_API_URL
    medicine_base_url: str = DEFAULT_MEDICINE_BASE_URL
    api_timeout: float = DEFAULT_TIMEOUT


def _required(env: Mapping[str, str], name: str, message: str) -> str:
    value = (env.get(name) or "").strip()
    if not value:
        raise ConfigError(message)
    return value


def _country_id(env: Mapping[str, str], name: str, message: str) -> int:
    raw = _required(env, name, message)
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{message}: {name}={raw!r} не число") from exc
    if value <= 0:
        raise ConfigError(f"{message}: {name}={raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings once at startup; raises ConfigError on bad input."""
    if env is None:
        env = os.environ

    bot_token = _required(env, "BOT_TOKEN", "Не указан токен телеграм бота")
    api_key = _required(env, "API_KEY", "Не указан ключ API")
    home_country_id = _country_id(env, "HOME_COUNTRY_ID", "Не указана домашняя страна")
    target_country_id = _country_id(env, "TARGET_COUNTRY_ID", "Не указана страна поиска")

    timeout_raw = env.get("API_TIMEOUT") or str(DEFAULT_TIMEOUT)
    try:
        api_timeout = float(timeout_raw)
    except ValueError as exc:
        raise ConfigError(f"Некорректный API_TIMEOUT={timeout_raw!r}") from exc
    if not math.isfinite(api_timeout) or api_timeout <= 0:
        raise ConfigError(f"Некорректный API_TIMEOUT={timeout_raw!r}")

    return Settings(
        bot_token=bot_token,
        api_key=api_key,
        home_country_id=home_country_id,
        target_country_id=target_country_id,
        api_url=env.get("API_URL") or DEFAULT_API_URL,
        medicine_base_url=(env.get("MEDICINE_BASE_URL") or DEFAULT_MEDICINE_BASE_URL).rstrip("/"),
        api_timeout=api_timeout,
    )
