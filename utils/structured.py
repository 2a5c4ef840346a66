"""Schema-validated generation on top of the plain text-completion primitive.

Providers differ in whether they support tool calling or a JSON response
format, so the schema is described in the prompt and enforced here.
"""

import json
import logging

from pydantic import ValidationError

from core.errors import DecodingError
from utils.llm import extract_json

logger = logging.getLogger(__name__)

SNIPPET_LEN = 200

JSON_INSTRUCTION = (
    "IMPORTANT: You MUST respond with ONLY a valid JSON object matching this schema. "
    "No markdown, no explanation, no code blocks. Just the raw JSON object."
)


def schema_prompt(system_prompt, schema):
    """Append the JSON-only instruction and the schema to a system prompt."""
    schema_desc = json.dumps(schema.model_json_schema(), indent=2)
    return f"{system_prompt}\n\n{JSON_INSTRUCTION}\n\nJSON Schema:\n{schema_desc}"


def generate_structured(client, system_prompt, messages, schema):
    """Call the model once and return an instance of `schema`.

    Args:
        client: A ModelClient.
        system_prompt: Stage system prompt, without the schema.
        messages: Conversation messages for the model.
        schema: pydantic model class the reply must satisfy.

    Raises:
        DecodingError: If the reply is not JSON or does not match the schema.
    """
    text = client.generate_text(schema_prompt(system_prompt, schema), messages)
    candidate = extract_json(text)

    try:
        parsed = json.loads(candidate)
    except ValueError:
        raise DecodingError(
            "Failed to parse model response as JSON. "
            f'Response starts with: "{text[:SNIPPET_LEN]}"'
        )

    try:
        result = schema.model_validate(parsed)
    except ValidationError as e:
        raise DecodingError(f"Model response does not match schema: {e}")

    logger.debug("Decoded %s from %d chars", schema.__name__, len(text))
    return result
