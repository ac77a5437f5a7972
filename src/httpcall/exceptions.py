"""Status-classified request errors and chain-aware accessors."""

from __future__ import annotations

from typing import Iterator


class RequestError(Exception):
    """Raised when a response status code is rejected by the status judge."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"Status Code {self.code}, Message: {self.message}"


def _walk(err: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    pending = [err]
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        if isinstance(current, BaseExceptionGroup):
            pending.extend(reversed(current.exceptions))
        if current.__context__ is not None and not current.__suppress_context__:
            pending.append(current.__context__)
        if current.__cause__ is not None:
            pending.append(current.__cause__)


def find_request_error(err: BaseException | None) -> RequestError | None:
    """Return the first RequestError found in the cause/context chain of err."""
    if err is None:
        return None
    for candidate in _walk(err):
        if isinstance(candidate, RequestError):
            return candidate
    return None


def get_error_code(err: BaseException | None) -> tuple[int, bool]:
    found = find_request_error(err)
    if found is None:
        return 0, False
    return found.code, True


def get_error_message(err: BaseException) -> str:
    found = find_request_error(err)
    if found is None:
        return str(err)
    return found.message


def is_error_code(err: BaseException | None, code: int) -> bool:
    found = find_request_error(err)
    return found is not None and found.code == code
