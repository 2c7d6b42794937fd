from __future__ import annotations

import pytest
from doubles import PERSON_JSON, TEST_HOST, Person, RecordingTransport

from dispatchkit import (
    APIClient,
    ClientConfig,
    Method,
    RequestDescriptor,
    Route,
    UploadRoute,
)
from dispatchkit.exceptions import (
    BadRequestError,
    FailedToCreateURLError,
    GetRequestCannotHaveBodyError,
    InterceptionRejectedError,
    InvalidHostError,
)

QUERY = [("q", "a"), ("skip", None)]


# =============================================================================
# Construction
# =============================================================================


@pytest.mark.parametrize(
    "host",
    ["not a url", "", "example.com", "ftp://example.com", "http:/missing-netloc", "httpfoo://x"],
)
def test_invalid_host_fails_construction(host: str) -> None:
    transport = RecordingTransport()
    with pytest.raises(InvalidHostError) as exc_info:
        APIClient(ClientConfig(host=host), transport=transport)
    assert exc_info.value.host == host
    assert transport.requests == []


@pytest.mark.parametrize(
    "host", ["http://example.com", "https://api.example.com/v1", "HTTPS://x.io"]
)
def test_valid_hosts(host: str) -> None:
    client = APIClient(host, transport=RecordingTransport())
    assert client.host == host
    assert client.config == ClientConfig(host=host)


# =============================================================================
# Verbs
# =============================================================================


async def test_get(client: APIClient, transport: RecordingTransport) -> None:
    transport.respond(PERSON_JSON)
    result = await client.get("/search", Person, params=QUERY)
    assert result == Person.subject()
    request = transport.requests[0]
    assert request.method is Method.GET
    assert request.url == "http://example.com/search?q=a"
    assert request.identifier == request.url


async def test_put_round_trips_payload(client: APIClient, transport: RecordingTransport) -> None:
    transport.respond(PERSON_JSON, 200)
    result = await client.put("/search", Person.subject(), Person)
    assert result == Person.subject()
    request = transport.requests[0]
    assert request.method is Method.PUT
    assert request.body == PERSON_JSON


async def test_post(client: APIClient, transport: RecordingTransport) -> None:
    transport.respond(PERSON_JSON)
    result = await client.post("/search", Person.subject(), Person, identifier="create")
    assert result == Person.subject()
    assert transport.requests[0].method is Method.POST
    assert transport.requests[0].identifier == "create"


async def test_delete_returns_raw_response(
    client: APIClient, transport: RecordingTransport
) -> None:
    transport.respond(b"", 204)
    response, content = await client.delete("/search", params=QUERY)
    assert response.status_code == 204
    assert content == b""
    assert transport.requests[0].method is Method.DELETE


async def test_not_found_fails_with_bad_request(
    client: APIClient, transport: RecordingTransport
) -> None:
    transport.respond(b'{"message":"not found"}', 404)
    with pytest.raises(BadRequestError) as exc_info:
        await client.get("/search", Person)
    assert exc_info.value.status_code == 404


async def test_build_errors_surface_when_awaited(client: APIClient) -> None:
    call = client.get("search", Person)
    with pytest.raises(FailedToCreateURLError):
        await call


# =============================================================================
# Routes
# =============================================================================


async def test_send_route(client: APIClient, transport: RecordingTransport) -> None:
    transport.respond(PERSON_JSON)
    result = await client.send(Route("/search", params=QUERY, identifier="search"), Person)
    assert result == Person.subject()
    request = transport.requests[0]
    assert (request.method, request.url, request.identifier) == (
        Method.GET,
        "http://example.com/search?q=a",
        "search",
    )


async def test_send_upload_route(client: APIClient, transport: RecordingTransport) -> None:
    transport.respond(PERSON_JSON)
    result = await client.send(UploadRoute("/search", Person.subject()), Person)
    assert result == Person.subject()
    assert transport.requests[0].method is Method.POST
    assert transport.requests[0].body == PERSON_JSON


async def test_custom_route_objects_are_supported(
    client: APIClient, transport: RecordingTransport
) -> None:
    class SearchRoute:
        path = "/search"
        method = "PUT"
        params = None
        identifier = None
        payload = Person.subject()

    await client.send_raw(SearchRoute())
    assert transport.requests[0].method is Method.PUT
    assert transport.requests[0].body == PERSON_JSON


async def test_get_route_with_payload_is_rejected(
    client: APIClient, transport: RecordingTransport
) -> None:
    with pytest.raises(GetRequestCannotHaveBodyError):
        await client.send(UploadRoute("/search", Person.subject(), method=Method.GET), Person)
    assert transport.requests == []


# =============================================================================
# Interception
# =============================================================================


async def test_default_headers_are_injected_without_dedup(
    transport: RecordingTransport,
) -> None:
    config = ClientConfig(
        host=TEST_HOST,
        default_headers=[("Authorization", "Bearer t"), ("Content-Type", "text/plain")],
    )
    client = APIClient(config, transport=transport)
    transport.respond(PERSON_JSON)
    await client.post("/people", Person.subject(), Person)
    request = transport.requests[0]
    assert request.header("authorization") == "Bearer t"
    assert request.header_values("content-type") == ["application/json", "text/plain"]


async def test_interceptor_sees_default_headers(transport: RecordingTransport) -> None:
    seen: list[RequestDescriptor] = []

    def interceptor(request: RequestDescriptor) -> RequestDescriptor:
        seen.append(request)
        return request.with_header("X-Request-Id", request.identifier)

    client = APIClient(
        ClientConfig(host=TEST_HOST, default_headers={"Accept": "application/json"}),
        transport=transport,
        interceptor=interceptor,
    )
    transport.respond(PERSON_JSON)
    await client.get("/search", Person)
    assert seen[0].header("Accept") == "application/json"
    assert transport.requests[0].header("X-Request-Id") == f"{TEST_HOST}/search"


async def test_interceptor_rejects_matching_identifier(transport: RecordingTransport) -> None:
    def reject_root(request: RequestDescriptor) -> RequestDescriptor:
        if request.identifier == TEST_HOST:
            raise InterceptionRejectedError("root is off limits", request=request)
        return request

    client = APIClient(TEST_HOST, transport=transport, interceptor=reject_root)
    with pytest.raises(InterceptionRejectedError):
        await client.get("", str)
    assert transport.requests == []

    transport.respond(b'"ok"')
    assert await client.get("/allowed", str) == "ok"
    assert len(transport.requests) == 1


async def test_will_send_can_be_overridden(transport: RecordingTransport) -> None:
    class TokenClient(APIClient):
        def will_send(self, request: RequestDescriptor) -> RequestDescriptor:
            request = super().will_send(request)
            return request.replacing_header("Authorization", "Bearer override")

    client = TokenClient(
        ClientConfig(host=TEST_HOST, default_headers=[("Authorization", "Bearer default")]),
        transport=transport,
    )
    transport.respond(PERSON_JSON)
    await client.get("/search", Person)
    assert transport.requests[0].header_values("Authorization") == ["Bearer override"]


async def test_context_manager_closes_transport(transport: RecordingTransport) -> None:
    async with APIClient(TEST_HOST, transport=transport) as client:
        assert client.http.transport is transport
    assert transport.closed
