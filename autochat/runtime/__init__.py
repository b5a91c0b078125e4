from .pump import Timer, EventPump
from .logging import configure_logging
from .settings_loader import load_settings
from .loaders import FilePaths, load_config, load_prompt_queue, ensure_default_files

__all__ = [
    "EventPump",
    "FilePaths",
    "Timer",
    "configure_logging",
    "ensure_default_files",
    "load_config",
    "load_prompt_queue",
    "load_settings",
]
