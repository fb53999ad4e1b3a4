"""Shared fixtures simulating the M2Web API with httpx.MockTransport."""

import json

import httpx
import pytest

from m2web_client import m2webapi

BASE_URL = "https://m2web.test/t2mapi"
DEVELOPER_ID = "795f1844-2f5e-4d8b-9922-25c45d3e1c47"


class FakeM2WebApi:
    """Routes requests by endpoint to canned responses and records them."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, list[httpx.Response | Exception]] = {}
        self.http_client = httpx.Client(transport=httpx.MockTransport(self._handle))

    def respond(
        self,
        endpoint: str,
        payload: dict | None = None,
        status_code: int = 200,
        content: bytes | None = None,
    ) -> None:
        """Queue a response for the next request to endpoint."""
        body = content if content is not None else json.dumps(payload).encode()
        response = httpx.Response(
            status_code,
            content=body,
            headers={"Content-Type": "application/json"},
        )
        self._routes.setdefault(endpoint, []).append(response)

    def fail(self, endpoint: str, exc: Exception) -> None:
        """Queue a transport failure for the next request to endpoint."""
        self._routes.setdefault(endpoint, []).append(exc)

    def calls(self, endpoint: str) -> list[httpx.Request]:
        """Requests received for endpoint."""
        return [r for r in self.requests if r.url.path == f"/t2mapi/{endpoint}"]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        queued = self._routes.get(endpoint)
        if not queued:
            msg = f"Unexpected request to {request.url}"
            raise AssertionError(msg)
        outcome = queued.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @staticmethod
    def query(request: httpx.Request) -> list[tuple[str, str]]:
        """Ordered query parameters of a recorded request."""
        return list(request.url.params.multi_items())


@pytest.fixture
def api() -> FakeM2WebApi:
    """Fake M2Web API with no queued responses."""
    return FakeM2WebApi()


@pytest.fixture
def config() -> m2webapi.ClientConfig:
    """Stateless configuration pointing at the fake API."""
    return m2webapi.ClientConfig(
        url=BASE_URL,
        account="account2",
        username="username2",
        password="password2",
        developer_id=DEVELOPER_ID,
    )


@pytest.fixture
def credential_params() -> list[tuple[str, str]]:
    """Query parameters of a request authenticated with full credentials."""
    return [
        ("t2maccount", "account2"),
        ("t2musername", "username2"),
        ("t2mpassword", "password2"),
        ("t2mdeveloperid", DEVELOPER_ID),
    ]


@pytest.fixture
def stateless_client(
    api: FakeM2WebApi,
    config: m2webapi.ClientConfig,
) -> m2webapi.M2WebClient:
    """Client authenticating with full credentials on every request."""
    return m2webapi.M2WebClient(config=config, http_client=api.http_client)


@pytest.fixture
def stateful_client(
    api: FakeM2WebApi,
    config: m2webapi.ClientConfig,
) -> m2webapi.M2WebClient:
    """Client authenticating with a session id after login."""
    return m2webapi.M2WebClient(
        config=config.model_copy(update={"stateful_auth": True}),
        http_client=api.http_client,
    )


@pytest.fixture
def device_payloads() -> list[dict]:
    """Two well-formed eWON records as returned by the API."""
    return [
        {
            "id": 1206698,
            "name": "bea-test",
            "encodedName": "bea-test",
            "status": "offline",
            "description": "",
            "customAttributes": ["bea", "", ""],
            "m2webServer": "eu2.m2web.talk2m.com",
            "lanDevices": [],
            "ewonServices": [],
        },
        {
            "id": 639491,
            "name": "eWON  FLEXOCOLOR SM2845",
            "encodedName": "eWON++FLEXOCOLOR+SM2845",
            "status": "online",
            "description": "SM2845 SIRIUS DEBOBINEUR1000",
            "customAttributes": ["FRANCE", "", ""],
            "m2webServer": "eu2.m2web.talk2m.com",
            "lanDevices": [],
            "ewonServices": [],
        },
    ]
