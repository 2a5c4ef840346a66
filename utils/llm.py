"""Claude API client and helpers for pulling JSON/HTML out of completions."""

import logging
import re
import time

import anthropic
import httpx

from config.defaults import DEFAULTS
from core.errors import ModelInvocationError

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n\n<!-- TRUNCATED: Response hit token limit -->"


class ModelClient:
    """Single text-completion primitive shared by every pipeline stage.

    Built once per run and passed explicitly to each agent; it never
    re-reads settings after construction.
    """

    def __init__(self, client, model=None, max_tokens=None):
        self.client = client
        self.model = model or DEFAULTS["model"]
        self.max_tokens = max_tokens or DEFAULTS["max_tokens"]

    def generate_text(self, system_prompt, messages):
        """Call Claude and return the raw text of the reply.

        Args:
            system_prompt: System prompt string.
            messages: List of {"role": ..., "content": ...} dicts.

        Raises:
            ModelInvocationError: If the provider fails twice in a row.
        """
        last_error = None
        for attempt in range(2):
            try:
                # Streaming avoids the SDK timeout for large max_tokens
                text = ""
                with self.client.messages.stream(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=system_prompt,
                    messages=messages,
                ) as stream:
                    for chunk in stream.text_stream:
                        text += chunk
                    stop_reason = stream.get_final_message().stop_reason

                if stop_reason == "max_tokens":
                    logger.warning("Completion truncated at %d tokens", self.max_tokens)
                    text += TRUNCATION_MARKER
                return text

            except (anthropic.APIError, httpx.TransportError) as e:
                last_error = e
                if attempt == 0:
                    logger.warning("Model call failed, retrying once: %s", e)
                    time.sleep(2)
                    continue

        raise ModelInvocationError(f"Model call failed: {last_error}")


def get_client(settings):
    """Build a ModelClient from provider settings. Raises if no API key is set."""
    provider = settings.get("provider", "anthropic")
    if provider != "anthropic":
        raise ModelInvocationError(f"Unsupported model provider: {provider}")

    api_key = settings.get("apiKey")
    if not api_key:
        raise ModelInvocationError(
            "ANTHROPIC_API_KEY environment variable is not set. "
            "Get a key at https://console.anthropic.com/ and run:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'"
        )

    kwargs = {"api_key": api_key}
    if settings.get("baseUrl"):
        kwargs["base_url"] = settings["baseUrl"]
    return ModelClient(anthropic.Anthropic(**kwargs), model=settings.get("defaultModel"))


_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE html>.*", re.DOTALL | re.IGNORECASE)
_HTML_RE = re.compile(r"<html.*</html>", re.DOTALL | re.IGNORECASE)


def extract_json(text):
    """Return the most likely JSON candidate in a completion.

    Tries, in order: the first fenced code block, the span from the first
    "{" to the last "}", and finally the whole trimmed text.
    """
    fence = _FENCE_RE.search(text)
    if fence:
        return fence.group(1).strip()

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        return text[first:last + 1]

    return text.strip()


def extract_html(text):
    """Pull a standalone HTML document out of a completion.

    Malformed output is returned trimmed and otherwise untouched.
    """
    doctype = _DOCTYPE_RE.search(text)
    if doctype:
        return doctype.group(0).strip()

    html = _HTML_RE.search(text)
    if html:
        return f"<!DOCTYPE html>\n{html.group(0)}"

    return text.strip()
