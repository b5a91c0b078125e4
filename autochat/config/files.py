"""Local file locations for the config and prompt collaborators."""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "config.json"
PROMPTS_FILENAME = "questions.json"
DEV_ASSETS_DIRNAME = "assets"

CONFIG_KEY_TOKEN = "token"
CONFIG_KEY_AGENT_ID = "agentId"

SAMPLE_PROMPTS: tuple[str, ...] = (
    "test question 1",
    "test question 2",
    "test question 3",
)
SAMPLE_TOKEN = "YOUR_TOKEN_HERE"
SAMPLE_AGENT_ID = "YOUR_AGENT_ID_HERE"

_HOME_RAW = (os.getenv("AUTOCHAT_HOME") or "").strip()
AUTOCHAT_HOME: Path = Path(_HOME_RAW).expanduser() if _HOME_RAW else Path.cwd()

__all__ = [
    "AUTOCHAT_HOME",
    "CONFIG_FILENAME",
    "CONFIG_KEY_AGENT_ID",
    "CONFIG_KEY_TOKEN",
    "DEV_ASSETS_DIRNAME",
    "PROMPTS_FILENAME",
    "SAMPLE_AGENT_ID",
    "SAMPLE_PROMPTS",
    "SAMPLE_TOKEN",
]
