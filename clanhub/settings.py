from __future__ import annotations

import os
import tomllib
from pathlib import Path

from dotenv import load_dotenv

from clanhub.settings_utils import read_bool
from clanhub.settings_utils import read_list

load_dotenv()

APP_HOST = os.environ.get("APP_HOST", "127.0.0.1")
APP_PORT = int(os.environ.get("APP_PORT", "10000"))

DB_DSN = os.environ.get("DB_DSN") or "sqlite:///./clanhub.db"

COMMAND_PREFIX = os.environ.get("COMMAND_PREFIX", "!")

DEBUG = read_bool(os.environ.get("DEBUG", "false"))

CLAN_STARTING_POINTS = int(os.environ.get("CLAN_STARTING_POINTS", "1000"))

DISALLOWED_NAMES = read_list(os.environ.get("DISALLOWED_NAMES", ""))

DISCORD_AUDIT_LOG_WEBHOOK = os.environ.get("DISCORD_AUDIT_LOG_WEBHOOK") or None

with open(Path(__file__).parent.parent / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]
