"""Error taxonomy for the M2Web REST API client.

Every failure surfaced by the client is an :class:`M2WebError` carrying an
HTTP-like status code and a message suitable for display. Errors compare
structurally, so two errors of the same class with the same code and
message are equal.
"""


class M2WebError(Exception):
    """Base class for all errors raised by the M2Web client."""

    display_format = "{message}"

    def __init__(self, code: int, message: str):
        super().__init__(code, message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return self.display_format.format(code=self.code, message=self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, M2WebError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.code == other.code
            and self.message == other.message
        )

    def __hash__(self) -> int:
        return hash((type(self), self.code, self.message))


class InvalidCredentialsError(M2WebError):
    """Authentication was refused, or no session is open."""

    display_format = "HTTP {code}: {message}"


class StatelessAuthSetError(M2WebError):
    """A session operation was called on a stateless client."""

    display_format = "Client set to authenticate statelessly: {message}"


class NoContentError(M2WebError):
    """The API returned no eWON."""

    display_format = "HTTP {code}: {message}"


class MissingParameterError(M2WebError):
    """A request parameter was missing or wrong (HTTP 400)."""

    display_format = "HTTP {code}: {message}"


class EmptyResponseError(M2WebError):
    """The requested resource does not exist (HTTP 410)."""

    display_format = "HTTP {code}: {message}"


class ResponseParsingError(M2WebError):
    """The response body could not be decoded."""

    display_format = "Unable to parse JSON response: {message}"


class InternalError(M2WebError):
    """The client was misused internally."""

    display_format = "Internal error: {message}"


class UnknownError(M2WebError):
    """Any failure that does not fit another kind."""

    display_format = "Unknown error: {message}"


class ClientConsumedError(M2WebError):
    """The client was used after a successful logout."""

    display_format = "Client already logged out: {message}"
