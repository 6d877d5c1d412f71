"""JSON Schema validation for on-disk snapshots.

Wraps the jsonschema library so that callers get a result instead of an
exception, whatever is wrong with the data or the schema.
"""

from __future__ import annotations

from typing import Any

from jsonschema import Draft202012Validator, ValidationError

from skill_manager.logging import get_logger

_logger = get_logger("jsonschema")


def validate(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """Validate data against a JSON Schema.

    Args:
        data: The data to validate.
        schema: Schema dict.

    Returns:
        Tuple of (is_valid, list of error messages). A broken schema is
        reported the same way, as (False, [message]).
    """
    try:
        errors = list(Draft202012Validator(schema).iter_errors(data))
    except Exception as e:
        msg = f"Validation failed unexpectedly: {e}"
        _logger.warning(msg)
        return False, [msg]

    messages = [_format_error(e) for e in errors]
    for msg in messages:
        _logger.debug("Validation error: %s", msg)
    return not messages, messages


def _format_error(error: ValidationError) -> str:
    """Render an error as ``path: message``, e.g. ``transcripts.a: 5 is not of type 'object'``."""
    path = ""
    for part in error.absolute_path:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return f"{path or '$'}: {error.message}"
