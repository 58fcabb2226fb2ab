"""Code generator — 6-digit numeric codes unique among live sessions."""

import re
import secrets
from collections.abc import Callable

CODE_MIN = 100000
CODE_MAX = 999999
CODE_PATTERN = re.compile(r"[0-9]{6}")

MAX_ATTEMPTS = 100


class CodeSpaceExhausted(RuntimeError):
    """No free code was found within the retry budget."""


def is_valid_code(code: str | None) -> bool:
    return bool(code) and CODE_PATTERN.fullmatch(code) is not None


def generate_code(
    is_taken: Callable[[str], bool],
    max_attempts: int = MAX_ATTEMPTS,
    randbelow: Callable[[int], int] = secrets.randbelow,
) -> str:
    """Draw uniformly from 100000-999999 until a code is not taken.

    Must run under the registry lock so the returned code is still free
    when it gets inserted.
    """
    for _ in range(max_attempts):
        code = str(CODE_MIN + randbelow(CODE_MAX - CODE_MIN + 1))
        if not is_taken(code):
            return code
    raise CodeSpaceExhausted(f"No free code after {max_attempts} attempts")
