"""
Unique sequential document numbers of the form ``PREFIX-NNN``.

Used for operation codes (``OPE-007``), expense category codes
(``CAT-DEP-002``), expense numbers (``DEP-20260131-004``) and invoice numbers
(``FAC-2026-031``). The suffix is zero-padded to three digits and grows past
999 without truncation.

The generator only proposes a code that the store does not already hold.
Two concurrent callers can still pick the same code; the unique index on the
column is the final authority and callers turn the resulting
``IntegrityError`` into ``DuplicateResourceError``.
"""
import logging
import re
from typing import Callable, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.db.models.functions import Length

from .exceptions import ConfigurationFailureError, DuplicateResourceError, is_unique_violation

logger = logging.getLogger(__name__)

SEPARATOR = '-'
PAD_WIDTH = 3


def format_code(prefix: str, number: int) -> str:
    return f"{prefix}{SEPARATOR}{number:0{PAD_WIDTH}d}"


def parse_suffix(code: Optional[str], prefix: str) -> int:
    """
    Return the numeric suffix of ``code``, or 0 when it cannot be read.

    A code belonging to another prefix, a missing code and a non-numeric
    suffix all count as "nothing issued yet".
    """
    if not code or not code.startswith(prefix):
        return 0
    suffix = code[len(prefix):].lstrip(SEPARATOR)
    try:
        return int(suffix)
    except ValueError:
        return 0


def generate_code(
    prefix: str,
    *,
    exists: Callable[[str], bool],
    last_code: Callable[[], Optional[str]],
    max_attempts: Optional[int] = None,
) -> str:
    """
    Generate the next free code for ``prefix``.

    Args:
        prefix: Code prefix without trailing separator, e.g. ``OPE``
        exists: Returns True when a code is already stored
        last_code: Returns the highest stored code for the prefix (or None)
        max_attempts: Collision retries before giving up

    Returns:
        The first candidate that ``exists`` reports as free.

    Raises:
        ConfigurationFailureError: If no free code is found within max_attempts
    """
    if max_attempts is None:
        max_attempts = settings.SVS_CODE_GENERATION_MAX_ATTEMPTS

    candidate = parse_suffix(last_code(), prefix) + 1
    for attempt in range(max_attempts):
        code = format_code(prefix, candidate)
        if not exists(code):
            logger.debug("Generated code %s after %d attempt(s)", code, attempt + 1)
            return code

        logger.debug("Code %s already taken, retrying", code)
        # Someone may have inserted since we read; never go backwards.
        candidate = max(parse_suffix(last_code(), prefix) + 1, candidate + 1)

    logger.error("Unable to generate a unique code for prefix %s after %d attempts", prefix, max_attempts)
    raise ConfigurationFailureError(
        f"Unable to generate a unique code for prefix {prefix} after {max_attempts} attempts"
    )


def generate_model_code(model, field: str, prefix: str, max_attempts: Optional[int] = None) -> str:
    """
    Generate the next code for ``model.field``, including soft-deleted rows.

    Only codes with a purely numeric suffix are considered, so a hand-made
    ``OPE-XYZ1`` never hides ``OPE-003``. Ordering by length first keeps
    ``OPE-1000`` above ``OPE-999``.
    """
    manager = model._default_manager
    numeric_suffix = {f'{field}__regex': rf'^{re.escape(prefix)}{SEPARATOR}[0-9]+$'}

    def exists(code):
        return manager.filter(**{field: code}).exists()

    def last_code():
        return (
            manager.filter(**numeric_suffix)
            .order_by(Length(field).desc(), F(field).desc())
            .values_list(field, flat=True)
            .first()
        )

    return generate_code(prefix, exists=exists, last_code=last_code, max_attempts=max_attempts)


def create_with_generated_code(model, field: str, prefix: str, create: Callable[[str], object], *, max_retries: int = 3):
    """
    Insert a row through ``create(code)`` using a freshly generated code.

    A concurrent insert that takes the same code between generation and
    insert surfaces as ``IntegrityError``; each attempt runs in its own
    savepoint and a new code is generated.

    Raises:
        DuplicateResourceError: If every attempt collided
        ConfigurationFailureError: If the generator itself gives up
    """
    for attempt in range(max_retries):
        code = generate_model_code(model, field, prefix)
        try:
            with transaction.atomic():
                return create(code)
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            if attempt == max_retries - 1:
                raise DuplicateResourceError.for_field(model.__name__, field, code)
            logger.warning("%s %s taken concurrently, retrying", model.__name__, code)

    raise RuntimeError(f"Unexpected error creating {model.__name__}")
