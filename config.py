import logging
import os
import shutil
import sys
import tomllib
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import structlog
from dotenv import load_dotenv

CONFIG_DIR = Path.home() / ".hanzifive"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

DEFAULT_REVISE_DECK_NAME = "revise"
DEFAULT_REVISE_DECK_DESCRIPTION = "Cards that were incorrectly guessed from the total words deck"
DEFAULT_STREAK_THRESHOLD = 3
DEFAULT_BACKUP_KEEP = 5


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def load_config() -> Dict[str, Any]:
    """Load config from ~/.hanzifive/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    app_cfg = config.get("app", {})
    config["app"] = {
        "environment": os.getenv("HANZIFIVE_ENV", app_cfg.get("environment", "development")),
    }
    revise_cfg = config.get("revise", {})
    config["revise"] = {
        "deck_name": os.getenv(
            "HANZIFIVE_REVISE_DECK_NAME",
            revise_cfg.get("deck_name", DEFAULT_REVISE_DECK_NAME),
        ),
        "deck_description": revise_cfg.get("deck_description", DEFAULT_REVISE_DECK_DESCRIPTION),
        "streak_threshold": int(os.getenv(
            "HANZIFIVE_STREAK_THRESHOLD",
            revise_cfg.get("streak_threshold", DEFAULT_STREAK_THRESHOLD),
        )),
        "pool_deck_id": _optional_int(os.getenv(
            "HANZIFIVE_POOL_DECK_ID",
            revise_cfg.get("pool_deck_id"),
        )),
    }
    backup_cfg = config.get("backup", {})
    config["backup"] = {
        "keep": int(backup_cfg.get("keep", DEFAULT_BACKUP_KEEP)),
    }
    return config


def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('revise', 'pool_deck_id')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return default if value is None else value


def configure_logging(environment: str = "development") -> None:
    """Configure structured logging with structlog."""
    use_json = environment == "production"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if environment == "development" else logging.INFO,
    )

    processors: list[Callable[..., Any]] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
