"""Unit tests for the AI gateway client."""
import httpx
import pytest

from styloren.exceptions import AIGatewayError, AIPaymentRequiredError, AIRateLimitedError
from styloren.integrations.ai_gateway import AIGatewayClient

MESSAGES = [{"role": "user", "content": "What goes with a navy blazer?"}]


@pytest.mark.asyncio
async def test_complete_returns_first_choice(gateway, gateway_server) -> None:
    gateway_server.content = "Try tan chinos and white sneakers."

    reply = await gateway.complete(MESSAGES, feature="chat")

    assert reply == "Try tan chinos and white sneakers."
    assert gateway_server.requests == [{"model": "test-model", "messages": MESSAGES}]


@pytest.mark.asyncio
async def test_request_carries_bearer_key() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    client = AIGatewayClient(
        url="https://ai.test/v1/chat/completions",
        api_key="secret-key",
        model="m",
        transport=httpx.MockTransport(handler),
    )

    await client.complete(MESSAGES)

    assert seen["auth"] == "Bearer secret-key"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [
        (429, AIRateLimitedError),
        (402, AIPaymentRequiredError),
        (500, AIGatewayError),
        (400, AIGatewayError),
    ],
)
async def test_error_statuses_map_to_typed_errors(gateway, gateway_server, status_code, error_type) -> None:
    gateway_server.status_code = status_code

    with pytest.raises(error_type):
        await gateway.complete(MESSAGES)


@pytest.mark.asyncio
async def test_payment_required_is_not_a_rate_limit(gateway, gateway_server) -> None:
    gateway_server.status_code = 402

    with pytest.raises(AIGatewayError) as exc_info:
        await gateway.complete(MESSAGES)

    assert not isinstance(exc_info.value, AIRateLimitedError)
    assert exc_info.value.code == "upstream_payment_required"


@pytest.mark.asyncio
async def test_empty_content_is_an_error(gateway, gateway_server) -> None:
    gateway_server.content = ""

    with pytest.raises(AIGatewayError):
        await gateway.complete(MESSAGES)


@pytest.mark.asyncio
async def test_malformed_body_is_an_error() -> None:
    client = AIGatewayClient(
        url="https://ai.test/v1/chat/completions",
        api_key="k",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []})),
    )

    with pytest.raises(AIGatewayError):
        await client.complete(MESSAGES)


@pytest.mark.asyncio
async def test_transport_failure_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = AIGatewayClient(
        url="https://ai.test/v1/chat/completions",
        api_key="k",
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(AIGatewayError):
        await client.complete(MESSAGES)


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_calling_out(gateway_server) -> None:
    client = AIGatewayClient(
        url="https://ai.test/v1/chat/completions",
        api_key="",
        transport=httpx.MockTransport(gateway_server.handler),
    )

    with pytest.raises(AIGatewayError):
        await client.complete(MESSAGES)

    assert gateway_server.requests == []
