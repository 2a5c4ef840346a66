"""Provider settings loaded from settings.json, with environment fallbacks."""

import json
import logging
import os

from config.defaults import DEFAULTS

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = {
    "provider": "anthropic",
    "defaultModel": DEFAULTS["model"],
    "apiKey": None,
    "baseUrl": None,
}


def load_settings(path=None):
    """Return the provider settings dict.

    Values stored in the settings file win over defaults. When no API key is
    stored, ANTHROPIC_API_KEY from the environment is used. A missing or
    unreadable settings file falls back to defaults.
    """
    path = path or DEFAULTS["settings_file"]
    stored = {}
    if os.path.isfile(path):
        try:
            with open(path) as f:
                stored = json.load(f).get("provider") or {}
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", path, e)
            stored = {}

    provider = dict(DEFAULT_PROVIDER)
    provider.update({k: v for k, v in stored.items() if v not in (None, "")})

    if not provider.get("apiKey"):
        provider["apiKey"] = os.environ.get("ANTHROPIC_API_KEY")

    return provider
