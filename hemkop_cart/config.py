from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_BASE_URL = "https://www.hemkop.se/"
DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "llama3.2"

# Pantry staples nobody needs to buy for a single recipe.
DEFAULT_EXCLUDED_INGREDIENTS: tuple[str, ...] = ("salt", "vatten", "olja")

# Used when no recipe URL is given or nothing could be extracted.
DEFAULT_SHOPPING_LIST: tuple[str, ...] = (
    "2.5 kg bananer",
    "en burk jordnötssmör",
    "500g vetemjöl",
    "1 liter mellanmjölk",
)

ENV_KEYS = [
    "HEMKOP_URL",
    "OLLAMA_URL",
    "OLLAMA_MODEL",
    "OLLAMA_TEMPERATURE",
    "OLLAMA_TIMEOUT",
    "EXCLUDED_INGREDIENTS",
    "SHOPPING_LIST",
    "HEADLESS",
]


@dataclass(frozen=True)
class Config:
    base_url: str = DEFAULT_BASE_URL
    ollama_url: str = DEFAULT_OLLAMA_URL
    ollama_model: str = DEFAULT_OLLAMA_MODEL
    temperature: float = 0.1
    llm_timeout_s: float = 60.0
    excluded_ingredients: tuple[str, ...] = DEFAULT_EXCLUDED_INGREDIENTS
    shopping_list: tuple[str, ...] = DEFAULT_SHOPPING_LIST
    headless: bool = False
    slow_mo_ms: int = 50
    recipe_timeout_ms: int = 60_000

    @staticmethod
    def load_from_env(environ: Mapping[str, str] | None = None) -> "Config":
        env = os.environ if environ is None else environ
        defaults = Config()

        return Config(
            base_url=env.get("HEMKOP_URL", defaults.base_url),
            ollama_url=env.get("OLLAMA_URL", defaults.ollama_url).rstrip("/"),
            ollama_model=env.get("OLLAMA_MODEL", defaults.ollama_model),
            temperature=_float(env, "OLLAMA_TEMPERATURE", defaults.temperature),
            llm_timeout_s=_float(env, "OLLAMA_TIMEOUT", defaults.llm_timeout_s),
            excluded_ingredients=_list(env, "EXCLUDED_INGREDIENTS", ",", defaults.excluded_ingredients),
            shopping_list=_list(env, "SHOPPING_LIST", ";", defaults.shopping_list),
            headless=_bool(env, "HEADLESS", defaults.headless),
        )


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    val = env.get(key)
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        raise RuntimeError(f"{key} must be a number, got {val!r}")


def _list(env: Mapping[str, str], key: str, sep: str, default: tuple[str, ...]) -> tuple[str, ...]:
    # Comma would split "2,5 kg", so the shopping list uses ';'.
    val = env.get(key)
    if val is None:
        return default
    return tuple(part.strip() for part in val.split(sep) if part.strip())


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    val = env.get(key)
    if val is None or not val.strip():
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}
