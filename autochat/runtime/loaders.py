"""Config and prompt-queue collaborators backed by local JSON files.

Development mode is detected when ``assets/questions.json`` exists under the
home directory; files are then read from ``assets/``. Otherwise they live in
the home directory itself, where sample files are created on first run.
"""

from __future__ import annotations

import logging
from typing import Any
from pathlib import Path
from dataclasses import dataclass

import orjson

from autochat.errors import ConfigUnavailable
from autochat.state.settings import ChatConfig
from autochat.config.secrets import get_token_override, get_agent_id_override
from autochat.config.files import (
    SAMPLE_TOKEN,
    SAMPLE_PROMPTS,
    CONFIG_FILENAME,
    SAMPLE_AGENT_ID,
    CONFIG_KEY_TOKEN,
    PROMPTS_FILENAME,
    CONFIG_KEY_AGENT_ID,
    DEV_ASSETS_DIRNAME,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FilePaths:
    home: Path
    dev: bool

    @classmethod
    def resolve(cls, home: Path) -> FilePaths:
        home = Path(home)
        dev = (home / DEV_ASSETS_DIRNAME / PROMPTS_FILENAME).is_file()
        return cls(home=home, dev=dev)

    @property
    def base_dir(self) -> Path:
        return self.home / DEV_ASSETS_DIRNAME if self.dev else self.home

    @property
    def config_file(self) -> Path:
        return self.base_dir / CONFIG_FILENAME

    @property
    def prompts_file(self) -> Path:
        return self.base_dir / PROMPTS_FILENAME


def _read_json(path: Path) -> Any:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ConfigUnavailable(source=str(path), reason=f"cannot read: {exc.strerror or exc}") from exc
    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError as exc:
        raise ConfigUnavailable(source=str(path), reason=f"invalid JSON: {exc}") from exc


def _write_json_if_missing(path: Path, value: Any) -> None:
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(value, option=orjson.OPT_INDENT_2))
    logger.info("created default %s", path)


def ensure_default_files(paths: FilePaths) -> None:
    """Create sample prompt and config files next to the client in production mode."""
    if paths.dev:
        return
    try:
        _write_json_if_missing(paths.prompts_file, list(SAMPLE_PROMPTS))
    except OSError:
        logger.error("cannot create %s", paths.prompts_file, exc_info=True)
    try:
        _write_json_if_missing(
            paths.config_file,
            {CONFIG_KEY_TOKEN: SAMPLE_TOKEN, CONFIG_KEY_AGENT_ID: SAMPLE_AGENT_ID},
        )
    except OSError:
        logger.error("cannot create %s", paths.config_file, exc_info=True)


def load_config(paths: FilePaths) -> ChatConfig:
    token = get_token_override()
    agent_id = get_agent_id_override()
    if not (token and agent_id):
        raw = _read_json(paths.config_file)
        if not isinstance(raw, dict):
            raise ConfigUnavailable(source=str(paths.config_file), reason="config must be a JSON object")
        if not token:
            token = raw.get(CONFIG_KEY_TOKEN) if isinstance(raw.get(CONFIG_KEY_TOKEN), str) else ""
        if not agent_id:
            agent_id = raw.get(CONFIG_KEY_AGENT_ID) if isinstance(raw.get(CONFIG_KEY_AGENT_ID), str) else ""

    token = (token or "").strip()
    agent_id = (agent_id or "").strip()
    if not token:
        raise ConfigUnavailable(source=str(paths.config_file), reason=f"missing '{CONFIG_KEY_TOKEN}'")
    if not agent_id:
        raise ConfigUnavailable(source=str(paths.config_file), reason=f"missing '{CONFIG_KEY_AGENT_ID}'")
    return ChatConfig(agent_id=agent_id, token=token)


def load_prompt_queue(paths: FilePaths) -> list[str]:
    raw = _read_json(paths.prompts_file)
    if not isinstance(raw, list):
        raise ConfigUnavailable(source=str(paths.prompts_file), reason="prompt list must be a JSON array")
    if not all(isinstance(item, str) for item in raw):
        raise ConfigUnavailable(source=str(paths.prompts_file), reason="prompt list entries must be strings")
    return list(raw)


__all__ = [
    "FilePaths",
    "ensure_default_files",
    "load_config",
    "load_prompt_queue",
]
