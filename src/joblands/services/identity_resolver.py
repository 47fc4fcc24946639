import logging
import uuid
from collections.abc import Awaitable, Callable

from joblands.core.exceptions import InvalidTitleError, TitleResolutionExhaustedError
from joblands.models.resume import TITLE_MAX_LENGTH

logger = logging.getLogger(__name__)

TitleExists = Callable[[uuid.UUID, str], Awaitable[bool]]

DEFAULT_MAX_ATTEMPTS = 10


def _with_suffix(title: str, n: int, max_length: int) -> str:
    suffix = f" ({n})"
    return f"{title[: max_length - len(suffix)].rstrip()}{suffix}"


async def resolve_title(
    desired_title: str,
    user_id: uuid.UUID,
    exists: TitleExists,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    max_length: int = TITLE_MAX_LENGTH,
) -> str:
    """Return ``desired_title`` or the first free "Title (n)" variant for the user.

    This is a best-effort pre-check; concurrent writers can still collide, and
    the storage unique constraint has the final word.
    """
    title = desired_title.strip()[:max_length].rstrip()
    if not title:
        raise InvalidTitleError()

    candidates = [title] + [_with_suffix(title, n, max_length) for n in range(2, max_attempts + 1)]
    for candidate in candidates:
        if not await exists(user_id, candidate):
            if candidate != title:
                logger.info("Title %r taken, using %r", title, candidate)
            return candidate

    raise TitleResolutionExhaustedError(
        f"No free title for {title!r} after {max_attempts} attempts"
    )
