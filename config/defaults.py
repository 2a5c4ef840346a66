"""Default pipeline settings."""

import os

DEFAULTS = {
    "model": "claude-sonnet-4-5-20250929",
    "max_tokens": 32768,
    "quality_threshold": 7,     # page and overall score gate
    "max_pages": 8,             # architect may not design more than this
    "max_workers": 8,           # coder fan-out ceiling
    "retry_trigger": "page",    # "page" | "overall", see core.quality.should_retry
    "projects_root": os.environ.get(
        "CANVASSMITH_PROJECTS_ROOT", os.path.join(os.getcwd(), "projects")
    ),
    "settings_file": os.environ.get(
        "CANVASSMITH_SETTINGS", os.path.join(os.getcwd(), "settings.json")
    ),
    "git_timeout": 30,
    "allowed_commands": ["git"],
    "log_level": "INFO",
}
