import json
from decimal import Decimal

import httpx
import pytest

from services.payment_service.gateway import (
    GatewayUnavailableError,
    HttpPaymentGateway,
    SimulatedPaymentGateway,
)


def _gateway(handler) -> HttpPaymentGateway:
    return HttpPaymentGateway(
        "https://gateway.test/v1/", api_key="sk_test", transport=httpx.MockTransport(handler)
    )


class TestHttpPaymentGateway:

    @pytest.mark.asyncio
    async def test_successful_charge(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "transaction_id": "TXN_9"})

        result = await _gateway(handler).charge(Decimal("55.00"))

        assert result.success
        assert result.transaction_id == "TXN_9"
        assert seen == {
            "url": "https://gateway.test/v1/charges",
            "auth": "Bearer sk_test",
            "body": {"amount": "55.00"},
        }

    @pytest.mark.asyncio
    async def test_explicit_decline(self) -> None:
        result = await _gateway(
            lambda request: httpx.Response(200, json={"success": False, "transaction_id": "DECL_1"})
        ).charge(Decimal("10.00"))

        assert not result.success
        assert result.transaction_id == "DECL_1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flag", ["false", "true", 1, "yes", None])
    async def test_only_json_true_approves(self, flag) -> None:
        result = await _gateway(
            lambda request: httpx.Response(200, json={"success": flag, "transaction_id": "T1"})
        ).charge(Decimal("10.00"))

        assert result.success is False
        assert result.transaction_id == "T1"

    @pytest.mark.asyncio
    async def test_error_status_is_a_decline(self) -> None:
        result = await _gateway(lambda request: httpx.Response(402, text="card declined")).charge(Decimal("10.00"))

        assert not result.success
        assert result.transaction_id is None

    @pytest.mark.asyncio
    async def test_non_object_body_is_a_decline(self) -> None:
        result = await _gateway(lambda request: httpx.Response(200, json=["ok"])).charge(Decimal("1.00"))

        assert not result.success

    @pytest.mark.asyncio
    async def test_transport_error_raises_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayUnavailableError):
            await _gateway(handler).charge(Decimal("10.00"))


@pytest.mark.asyncio
async def test_simulated_gateway_always_approves() -> None:
    result = await SimulatedPaymentGateway().charge(Decimal("12.34"))

    assert result.success
    assert result.transaction_id.startswith("TXN_")
