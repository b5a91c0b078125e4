"""Secrets and authentication configuration."""

from __future__ import annotations

import os

ENV_AUTOCHAT_TOKEN = "AUTOCHAT_TOKEN"
ENV_AUTOCHAT_AGENT_ID = "AUTOCHAT_AGENT_ID"


def get_token_override() -> str:
    return (os.getenv(ENV_AUTOCHAT_TOKEN) or "").strip()


def get_agent_id_override() -> str:
    return (os.getenv(ENV_AUTOCHAT_AGENT_ID) or "").strip()


__all__ = [
    "ENV_AUTOCHAT_AGENT_ID",
    "ENV_AUTOCHAT_TOKEN",
    "get_agent_id_override",
    "get_token_override",
]
