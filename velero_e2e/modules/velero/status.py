"""Decoding of `velero <kind> get -o json` output."""
import json
import logging
from typing import Optional

from velero_e2e.errors import MalformedOutputError, PhaseMismatchError
from .models import CapturedOutput

logger = logging.getLogger("velero_e2e.velero.status")


def decode_phase(output: bytes) -> str:
    """Return ``status.phase`` from a Velero JSON document.

    Every other field is ignored. A missing status or phase decodes to ''.

    Raises:
        MalformedOutputError: If the bytes are not a JSON object
    """
    try:
        document = json.loads(output.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedOutputError(f"Failed to decode status document: {e}") from e

    if not isinstance(document, dict):
        raise MalformedOutputError(f"Status document is a {type(document).__name__}, not an object")

    status = document.get('status') or {}
    if not isinstance(status, dict):
        raise MalformedOutputError("Field 'status' is not an object")

    phase = status.get('phase') or ''
    if not isinstance(phase, str):
        raise MalformedOutputError("Field 'status.phase' is not a string")
    return phase


def check_phase(output, expected: str, kind: Optional[str] = None, name: Optional[str] = None) -> str:
    """Compare the decoded phase against the expected one.

    Args:
        output: Raw bytes or CapturedOutput from the CLI
        expected: Phase that must be reported
        kind: Resource kind, for error messages
        name: Resource name, for error messages

    Returns:
        The observed phase

    Raises:
        MalformedOutputError: If the output cannot be decoded
        PhaseMismatchError: If the observed phase differs from expected
    """
    data = output.data if isinstance(output, CapturedOutput) else output
    observed = decode_phase(data)
    if observed != expected:
        raise PhaseMismatchError(observed, expected, kind=kind, name=name)
    logger.debug(f"{kind or 'resource'} {name or ''} is in phase {observed}")
    return observed
