"""Errors raised by the marketplace that Protean does not already model.

Validation, state-machine and lookup failures use Protean's own exceptions
(``ValidationError``, ``InvalidStateError``, ``ObjectNotFoundError``). The
only failure mode specific to this domain is the order backend misbehaving.
"""

from protean.exceptions import ProteanException


class RemoteFailure(ProteanException):
    """The order backend could not be reached or rejected the request.

    ``message`` is the server-provided message when the backend sent one,
    otherwise a generic message for the attempted action.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message
