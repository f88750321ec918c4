from __future__ import annotations

import pytest

from school_portal.services.backend import (
    WRITE_ACK,
    BackendParseError,
    BackendRequestError,
    ErrorKind,
    RequestClient,
    RequestTimeoutError,
    Result,
    normalize_response,
)

from .conftest import API_KEY, BASE_URL, FakeBackend


def test_normalize_response_no_content_is_none() -> None:
    assert normalize_response(204, "") is None


def test_normalize_response_empty_success_body_is_write_ack() -> None:
    assert normalize_response(201, "") is WRITE_ACK
    assert normalize_response(200, "   ") is WRITE_ACK


def test_normalize_response_unparsable_created_body_is_write_ack() -> None:
    assert normalize_response(201, "Created") is WRITE_ACK


def test_normalize_response_unparsable_ok_body_raises_parse_error() -> None:
    with pytest.raises(BackendParseError) as exc_info:
        normalize_response(200, "<html>", label="GET activities")
    assert exc_info.value.kind is ErrorKind.PARSE


def test_normalize_response_error_status_carries_server_message() -> None:
    with pytest.raises(BackendRequestError) as exc_info:
        normalize_response(409, '{"message": "duplicate key"}', reason="Conflict")
    error = exc_info.value
    assert error.status == 409
    assert error.server_message == "duplicate key"
    assert str(error) == "API Error 409: duplicate key"
    assert error.kind is ErrorKind.PROTOCOL


def test_normalize_response_error_without_body_uses_reason() -> None:
    with pytest.raises(BackendRequestError) as exc_info:
        normalize_response(500, "", reason="Internal Server Error")
    assert str(exc_info.value) == "API Error 500: Internal Server Error"


def test_client_rejects_missing_credentials() -> None:
    with pytest.raises(ValueError):
        RequestClient(base_url="", api_key=API_KEY)
    with pytest.raises(ValueError):
        RequestClient(base_url=BASE_URL, api_key="  ")
    with pytest.raises(ValueError):
        RequestClient(base_url=BASE_URL, api_key=API_KEY, request_timeout=0)


@pytest.mark.asyncio
async def test_request_sends_key_headers_and_json_body(client: RequestClient, backend: FakeBackend) -> None:
    await client.request("POST", "activities", json={"title": "Trip"}, headers={"Prefer": "return=representation"})

    call = backend.calls[-1]
    assert call.url == f"{BASE_URL}/rest/v1/activities"
    assert call.headers["apikey"] == API_KEY
    assert call.headers["Authorization"] == f"Bearer {API_KEY}"
    assert call.headers["Content-Type"] == "application/json"
    assert call.headers["Prefer"] == "return=representation"
    assert call.json() == {"title": "Trip"}


@pytest.mark.asyncio
async def test_request_timeout_raises_timeout_error(backend: FakeBackend) -> None:
    backend.delay = 0.5
    async with RequestClient(base_url=BASE_URL, api_key=API_KEY, request_timeout=0.05, session=backend) as client:
        with pytest.raises(RequestTimeoutError) as exc_info:
            await client.request("GET", "activities")
    assert exc_info.value.kind is ErrorKind.TIMEOUT
    assert exc_info.value.timeout == pytest.approx(0.05)


@pytest.mark.asyncio
async def test_result_capture_classifies_failures(client: RequestClient, backend: FakeBackend) -> None:
    backend.fail("GET", "activities", status=503, body="")

    result = await Result.capture(client.request("GET", "activities"))

    assert not result.ok
    assert result.kind is ErrorKind.PROTOCOL
    assert result.value_or([]) == []
    with pytest.raises(BackendRequestError):
        result.unwrap()


@pytest.mark.asyncio
async def test_rpc_posts_to_function_endpoint(client: RequestClient, backend: FakeBackend) -> None:
    backend.add_user("admin@school.ma", "secret-pass")

    data = await client.rpc("authenticate_user", {"p_email": "admin@school.ma", "p_password": "secret-pass"})

    assert data["success"] is True
    assert backend.calls[-1].path == "rpc/authenticate_user"
