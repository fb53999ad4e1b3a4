"""M2Web REST API client.

Provides an HTTP client for the Talk2M M2Web API with stateless or
stateful (session) authentication, response validation using Pydantic
models, and classification of API failures into typed errors.
"""

import time

import httpx
import pydantic
import structlog

from . import errors, types

logger = structlog.get_logger(__name__)

DEFAULT_URL = "https://m2web.talk2m.com/t2mapi"
DEFAULT_ACCOUNT = "account1"
DEFAULT_USERNAME = "username1"
DEFAULT_PASSWORD = "password1"
DEFAULT_DEVELOPER_ID = "731e38ec-981f-4f31-9cb5-e87f0d571816"

LOGIN_ENDPOINT = "login"
LOGOUT_ENDPOINT = "logout"
DEVICES_ENDPOINT = "getewons"
DEVICE_ENDPOINT = "getewon"

NO_SESSION_MESSAGE = "No session opened, please login before requesting the API"
STATELESS_MESSAGE = "stateful_auth was not set"

_MAX_DEVICE_ID = 0xFFFFFFFF

_FAILURE_ERRORS: dict[int, type[errors.M2WebError]] = {
    httpx.codes.BAD_REQUEST: errors.MissingParameterError,
    httpx.codes.FORBIDDEN: errors.InvalidCredentialsError,
    httpx.codes.GONE: errors.EmptyResponseError,
}

_DECODE_MESSAGES: dict[type[types.DecodeError], str] = {
    types.MalformedResponseError: "JSON response syntax error",
    types.InvalidResponseDataError: (
        "JSON response data format does not match the expected one"
    ),
    types.TruncatedResponseError: "An empty or incomplete response was received",
}


class ClientConfig(pydantic.BaseModel):
    """Connection and authentication parameters for the M2Web API."""

    model_config = pydantic.ConfigDict(frozen=True)

    url: str = pydantic.Field(DEFAULT_URL, description="Base URL of the M2Web API")
    account: str = pydantic.Field(
        DEFAULT_ACCOUNT,
        description="Talk2M corporate account",
    )
    username: str = pydantic.Field(
        DEFAULT_USERNAME,
        description="Talk2M user attached to the account",
    )
    password: str = pydantic.Field(
        DEFAULT_PASSWORD,
        description="Password of the Talk2M user",
    )
    developer_id: str = pydantic.Field(
        DEFAULT_DEVELOPER_ID,
        description="Talk2M API key",
    )
    stateful_auth: bool = pydantic.Field(
        False,
        description="Authenticate once and reuse a session id",
    )
    timeout: float | None = pydantic.Field(
        None,
        description="Request timeout in seconds, None disables it",
        gt=0,
    )


def parsing_error(exc: types.DecodeError) -> errors.ResponseParsingError:
    """Map a decode failure onto a ResponseParsingError."""
    prefix = _DECODE_MESSAGES.get(
        type(exc),
        "Unknown error while parsing JSON response",
    )
    return errors.ResponseParsingError(500, f"{prefix}: {exc}")


def missing_field_error(field: str) -> errors.ResponseParsingError:
    """Parsing error for a payload field absent from a successful response."""
    return parsing_error(types.InvalidResponseDataError(f"missing field `{field}`"))


def transport_error(exc: httpx.HTTPError | httpx.InvalidURL) -> errors.M2WebError:
    """Map a transport-level failure onto an M2WebError.

    Covers failures raised while building the request, such as an invalid
    port in the configured url, as well as failures while sending it.
    """
    if (
        isinstance(exc, httpx.HTTPStatusError)
        and exc.response.status_code == httpx.codes.FORBIDDEN
    ):
        return errors.InvalidCredentialsError(403, str(exc))
    return errors.UnknownError(500, f"Unknown error while requesting API: {exc}")


def failure_error(
    status_code: int,
    api_response: types.ApiResponse,
) -> errors.M2WebError:
    """Map an unsuccessful API response onto an M2WebError.

    Args:
        status_code: HTTP status of the response.
        api_response: Decoded envelope with ``success`` set to False.

    Returns:
        The error matching the HTTP status, or UnknownError.
    """
    error_class = _FAILURE_ERRORS.get(status_code)
    if error_class is None:
        return errors.UnknownError(500, "Unknown error occurred")
    return error_class(status_code, api_response.message)


class M2WebClient:
    """HTTP client for the M2Web REST API.

    Every request authenticates either statelessly, with the full Talk2M
    credentials, or statefully, with a session id obtained by ``login()``.
    A successful ``logout()`` is terminal: any later call raises
    ClientConsumedError.

    The session id is unsynchronised state. A stateful client must not be
    shared between threads.

    Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http_client: httpx.Client | None = None,
    ):
        """Initialize the API client.

        Args:
            config: Connection parameters, defaults applied when omitted.
            http_client: Transport to send requests with. When omitted the
                client creates one and closes it on ``close()``.

        Raises:
            ValueError: If the configured url is empty.
        """
        self.config = config or ClientConfig()
        if not self.config.url:
            msg = "url cannot be empty"
            raise ValueError(msg)

        self.base_url = self.config.url.rstrip("/")

        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self.config.timeout)

        self._session: str | None = None
        self._consumed = False

    @property
    def http_client(self) -> httpx.Client:
        """Transport used to send requests, owned or injected."""
        return self._client

    @property
    def session(self) -> str | None:
        """Current session id, None when no session is open."""
        return self._session

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the HTTP client if it is owned and still open."""
        if self._owns_client and not self._client.is_closed:
            self._client.close()

    def login(self) -> str:
        """Open a stateful session.

        Authenticates with the full credentials and keeps the returned
        session id for subsequent calls. Calling it again re-authenticates
        and replaces the session id.

        Returns:
            The session id.

        Raises:
            StatelessAuthSetError: If the client authenticates statelessly.
            M2WebError: If the API refuses the login.
        """
        self._ensure_stateful()

        api_response = self._request_api(LOGIN_ENDPOINT)
        if not api_response.t2msession:
            raise missing_field_error("t2msession")

        self._session = api_response.t2msession
        logger.info("Session opened", base_url=self.base_url)
        return self._session

    def logout(self) -> None:
        """Close the stateful session.

        The session id is cleared and the client becomes unusable only once
        the API confirms the logout. On failure the session id is kept so
        the logout can be retried.

        Raises:
            StatelessAuthSetError: If the client authenticates statelessly.
            InvalidCredentialsError: If no session is open.
            M2WebError: If the API refuses the logout.
        """
        self._ensure_stateful()

        self._request_api(LOGOUT_ENDPOINT)

        self._session = None
        self._consumed = True
        logger.info("Session closed", base_url=self.base_url)
        self.close()

    def list_devices(self, pool: str | None = None) -> list[types.Device]:
        """Fetch the eWONs of the account, optionally limited to a pool.

        Args:
            pool: Name of the pool to filter on. All pools when omitted.

        Returns:
            List of validated Device objects, never empty.

        Raises:
            NoContentError: If the API returned no eWON.
            M2WebError: If the request fails.
        """
        self._ensure_usable()
        api_response = self._request_api(DEVICES_ENDPOINT, [("pool", pool or "")])

        if not api_response.ewons:
            raise errors.NoContentError(204, "No eWON were returned by API")
        return api_response.ewons

    def get_device_by_name(self, name: str) -> types.Device:
        """Fetch one eWON by its exact name.

        Raises:
            EmptyResponseError: If no eWON has this name.
            M2WebError: If the request fails.
        """
        self._ensure_usable()
        return self._get_device([("name", name)])

    def get_device_by_id(self, device_id: int) -> types.Device:
        """Fetch one eWON by its exact id.

        Raises:
            ValueError: If device_id is not an unsigned 32-bit integer.
            EmptyResponseError: If no eWON has this id.
            M2WebError: If the request fails.
        """
        if (
            isinstance(device_id, bool)
            or not isinstance(device_id, int)
            or not 0 <= device_id <= _MAX_DEVICE_ID
        ):
            msg = f"device_id must be an integer between 0 and {_MAX_DEVICE_ID}"
            raise ValueError(msg)

        self._ensure_usable()
        return self._get_device([("id", str(device_id))])

    def _get_device(self, params: list[tuple[str, str]]) -> types.Device:
        api_response = self._request_api(DEVICE_ENDPOINT, params)
        if api_response.ewon is None:
            raise missing_field_error("ewon")
        return api_response.ewon

    def _ensure_usable(self) -> None:
        if self._consumed:
            raise errors.ClientConsumedError(500, "no request can be made after logout")

    def _ensure_stateful(self) -> None:
        self._ensure_usable()
        if not self.config.stateful_auth:
            raise errors.StatelessAuthSetError(500, STATELESS_MESSAGE)

    def _auth_params(self, endpoint: str) -> list[tuple[str, str]]:
        """Build the authentication query parameters for an endpoint.

        Stateless clients, and stateful clients logging in, send the full
        credentials. Other stateful requests send the session id.

        Raises:
            InvalidCredentialsError: If a stateful request needs a session
                and none is open.
        """
        if not self.config.stateful_auth or endpoint == LOGIN_ENDPOINT:
            return [
                ("t2maccount", self.config.account),
                ("t2musername", self.config.username),
                ("t2mpassword", self.config.password),
                ("t2mdeveloperid", self.config.developer_id),
            ]

        if self._session is None:
            raise errors.InvalidCredentialsError(403, NO_SESSION_MESSAGE)
        return [
            ("t2msession", self._session),
            ("t2mdeveloperid", self.config.developer_id),
        ]

    def _request_api(
        self,
        endpoint: str,
        params: list[tuple[str, str]] | None = None,
    ) -> types.ApiResponse:
        """Make an HTTP request to the M2Web API.

        Handles authentication, request execution, response decoding and
        classification of unsuccessful responses.

        Args:
            endpoint: API endpoint name (e.g., "getewons").
            params: Endpoint-specific query parameters, sent after the
                authentication parameters.

        Returns:
            The decoded envelope of a successful response.

        Raises:
            InternalError: If endpoint is empty.
            M2WebError: If authentication, the request, decoding or the API
                call fails.
        """
        if not endpoint:
            raise errors.InternalError(500, "No API endpoint was provided")

        query = self._auth_params(endpoint)
        query.extend(params or [])

        start_time = time.time()
        # Parameter values hold credentials, only their names are logged
        logger.debug(
            "Making API request",
            method="GET",
            endpoint=endpoint,
            params=[name for name, _ in query],
        )
        try:
            response = self._client.get(f"{self.base_url}/{endpoint}", params=query)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.exception(
                "API request failed",
                endpoint=endpoint,
                duration_seconds=round(time.time() - start_time, 3),
            )
            raise transport_error(exc) from exc

        logger.debug(
            "API request completed",
            endpoint=endpoint,
            status_code=response.status_code,
            duration_seconds=round(time.time() - start_time, 3),
        )

        try:
            api_response = types.decode_response(response.content)
        except types.DecodeError as exc:
            logger.error(
                "Failed to parse API response",
                endpoint=endpoint,
                status_code=response.status_code,
                error=str(exc),
            )
            raise parsing_error(exc) from exc

        if api_response.success:
            return api_response

        logger.error(
            "API error response",
            endpoint=endpoint,
            status_code=response.status_code,
            error_message=api_response.message,
        )
        raise failure_error(response.status_code, api_response)
