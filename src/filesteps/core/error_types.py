from __future__ import annotations

from typing import Final

# Typed errors let report consumers branch without parsing messages.
# Keep this list minimal and grow it only when a new type is actually emitted.
KNOWN_ERROR_TYPES: Final[set[str]] = {
    "AMBIGUOUS_STEP",
    "ASSERTION_FAILED",
    "INVALID_ARGUMENT",
    "IO_ERROR",
    "MISSING_DOC_STRING",
    "NOT_FOUND",
    "PARSE_FAILED",
    "PATH_ESCAPE",
    "RUN_FAILED",
    "UNDEFINED_STEP",
    "UNEXPECTED_DOC_STRING",
}


def assert_known_error_type(error_type: str) -> None:
    if error_type not in KNOWN_ERROR_TYPES:
        raise ValueError(
            f"Unknown error type: {error_type!r}. Add it to filesteps.core.error_types.KNOWN_ERROR_TYPES."
        )


class StepConfigError(Exception):
    """A step that cannot run as written: no binding, a bad doc string, or a bad path.

    Subclasses set ``error_type`` to one of KNOWN_ERROR_TYPES.
    """

    error_type: str
