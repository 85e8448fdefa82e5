"""
Test RPC Client with Mocks

Tests for async RPC client behavior with mocked responses.
"""

import sys
import asyncio
import base64
from pathlib import Path
from unittest.mock import Mock, AsyncMock, patch

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def _response(result=None, error=None, status_code=200):
    response = Mock()
    response.status_code = status_code
    body = {"jsonrpc": "2.0", "id": 1}
    if error is not None:
        body["error"] = error
    else:
        body["result"] = result
    response.json.return_value = body
    response.raise_for_status = Mock()
    return response


def test_rpc_config_defaults():
    """Test RpcClientConfig default values from global config"""
    from whirlpool_tour.infra.rpc import RpcClientConfig

    print("Testing RpcClientConfig defaults...")

    config = RpcClientConfig()

    assert config.timeout_seconds > 0, "Should have positive timeout"
    assert config.max_retries > 0, "Should have positive retries"
    assert config.commitment in ("processed", "confirmed", "finalized"), "Invalid commitment"

    print("  RpcClientConfig defaults: PASSED")


def test_rpc_config_override():
    """Test RpcClientConfig with overrides"""
    from whirlpool_tour.infra.rpc import RpcClientConfig

    print("Testing RpcClientConfig override...")

    config = RpcClientConfig(
        timeout_seconds=60.0,
        max_retries=5,
        commitment="finalized",
    )

    assert config.timeout_seconds == 60.0, "Should use override timeout"
    assert config.max_retries == 5, "Should use override retries"
    assert config.commitment == "finalized", "Should use override commitment"

    print("  RpcClientConfig override: PASSED")


def test_rpc_client_init():
    """Test RpcClient initialization"""
    from whirlpool_tour.infra.rpc import RpcClient
    from whirlpool_tour.errors import ConfigurationError

    print("Testing RpcClient init...")

    client = RpcClient("https://api.devnet.solana.com")
    assert client.endpoint == "https://api.devnet.solana.com"

    client = RpcClient([
        "https://primary.example.com",
        "https://backup.example.com",
    ])
    assert client.endpoint == "https://primary.example.com"

    try:
        RpcClient([])
        assert False, "Should raise for empty endpoints"
    except ConfigurationError:
        pass

    print("  RpcClient init: PASSED")


def test_rpc_call_success():
    """Test successful RPC call"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient

    print("Testing RPC call success...")

    mock_post = AsyncMock(return_value=_response(
        {"context": {"slot": 1}, "value": {"blockhash": "test_blockhash", "lastValidBlockHeight": 12345}}
    ))

    async def run():
        async with RpcClient("https://api.devnet.solana.com") as client:
            return await client.get_latest_blockhash()

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        result = asyncio.run(run())

    assert result["blockhash"] == "test_blockhash"
    assert result["lastValidBlockHeight"] == 12345

    body = mock_post.call_args.kwargs["json"]
    assert body["method"] == "getLatestBlockhash"
    assert body["jsonrpc"] == "2.0"

    print("  RPC call success: PASSED")


def test_rpc_call_error():
    """Test JSON-RPC error objects become RpcError with node details"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient, RpcClientConfig
    from whirlpool_tour.errors import RpcError, ErrorCode

    print("Testing RPC error handling...")

    mock_post = AsyncMock(return_value=_response(
        error={"code": -32602, "message": "Invalid params", "data": {"logs": ["log line"]}}
    ))

    async def run():
        config = RpcClientConfig(max_retries=3, retry_delay_seconds=0.01)
        async with RpcClient("https://api.devnet.solana.com", config) as client:
            await client.call("getAccountInfo", ["bad"])

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        try:
            asyncio.run(run())
            assert False, "Should raise RpcError"
        except RpcError as e:
            assert "Invalid params" in str(e)
            assert e.code == ErrorCode.RPC_INVALID_RESPONSE
            assert e.rpc_error_code == -32602
            assert e.rpc_error_data == {"logs": ["log line"]}

    # Node errors are answers, not transport failures: no retry
    assert mock_post.await_count == 1

    print("  RPC error handling: PASSED")


def test_rpc_rate_limit():
    """Test rate limit handling"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient, RpcClientConfig

    print("Testing rate limit handling...")

    rate_limit_response = Mock()
    rate_limit_response.status_code = 429

    mock_post = AsyncMock(side_effect=[rate_limit_response, _response(12345)])

    async def run():
        config = RpcClientConfig(retry_delay_seconds=0.01, max_retries=3)
        async with RpcClient("https://api.devnet.solana.com", config) as client:
            return await client.call("getSlot", [])

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        result = asyncio.run(run())

    assert result == 12345
    assert mock_post.await_count == 2

    print("  Rate limit handling: PASSED")


def test_rpc_timeout():
    """Test timeout handling"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient, RpcClientConfig
    from whirlpool_tour.errors import RpcError, ErrorCode

    print("Testing timeout handling...")

    mock_post = AsyncMock(side_effect=httpx.TimeoutException("Timeout"))

    async def run():
        config = RpcClientConfig(timeout_seconds=1.0, max_retries=2, retry_delay_seconds=0.01)
        async with RpcClient("https://api.devnet.solana.com", config) as client:
            await client.call("getSlot", [])

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        try:
            asyncio.run(run())
            assert False, "Should raise RpcError"
        except RpcError as e:
            assert e.code == ErrorCode.RPC_TIMEOUT
            assert e.recoverable == True

    assert mock_post.await_count == 2

    print("  Timeout handling: PASSED")


def test_rpc_endpoint_rotation():
    """Test fallback to the next endpoint after connection failures"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient, RpcClientConfig

    print("Testing endpoint rotation...")

    mock_post = AsyncMock(side_effect=[httpx.ConnectError("refused"), _response(99)])

    async def run():
        config = RpcClientConfig(max_retries=1, retry_delay_seconds=0.01)
        async with RpcClient(
            ["https://primary.example.com", "https://backup.example.com"], config
        ) as client:
            result = await client.call("getBlockHeight", [])
            return result, client.endpoint

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        result, endpoint = asyncio.run(run())

    assert result == 99
    assert endpoint == "https://backup.example.com"
    urls = [c.args[0] for c in mock_post.call_args_list]
    assert urls == ["https://primary.example.com", "https://backup.example.com"]

    print("  Endpoint rotation: PASSED")


def test_send_transaction_single_attempt():
    """Test sendTransaction reaches the node at most once"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient, RpcClientConfig
    from whirlpool_tour.errors import RpcError

    print("Testing sendTransaction single attempt...")

    mock_post = AsyncMock(side_effect=httpx.TimeoutException("Timeout"))

    async def run():
        config = RpcClientConfig(max_retries=3, retry_delay_seconds=0.01)
        async with RpcClient(
            ["https://primary.example.com", "https://backup.example.com"], config
        ) as client:
            await client.send_transaction(b"\x01\x02\x03", skip_preflight=False)

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        try:
            asyncio.run(run())
            assert False, "Should raise RpcError"
        except RpcError:
            pass

    assert mock_post.await_count == 1, "Transaction must not be resent"

    params = mock_post.call_args.kwargs["json"]["params"]
    assert params[0] == base64.b64encode(b"\x01\x02\x03").decode("ascii")
    assert params[1]["maxRetries"] == 0
    assert params[1]["encoding"] == "base64"
    assert params[1]["skipPreflight"] == False

    print("  sendTransaction single attempt: PASSED")


def test_get_account_info():
    """Test get_account_info and data decoding"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient, decode_account_data

    print("Testing get_account_info...")

    raw = bytes(range(16))
    account = {
        "data": [base64.b64encode(raw).decode("ascii"), "base64"],
        "executable": False,
        "lamports": 1000000,
        "owner": "11111111111111111111111111111111",
        "rentEpoch": 0,
    }
    mock_post = AsyncMock(return_value=_response({"context": {"slot": 1}, "value": account}))

    async def run():
        async with RpcClient("https://api.devnet.solana.com") as client:
            info = await client.get_account_info("SomeAddress1111111111111111111111111111111")
            data = await client.get_account_data("SomeAddress1111111111111111111111111111111")
            return info, data

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        info, data = asyncio.run(run())

    assert info["lamports"] == 1000000
    assert data == raw
    assert decode_account_data(info) == raw

    print("  get_account_info: PASSED")


def test_get_account_info_not_found():
    """Test get_account_info for a missing account"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient, decode_account_data

    print("Testing get_account_info not found...")

    mock_post = AsyncMock(return_value=_response({"context": {"slot": 1}, "value": None}))

    async def run():
        async with RpcClient("https://api.devnet.solana.com") as client:
            return await client.get_account_info("Missing111111111111111111111111111111111111")

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        info = asyncio.run(run())

    assert info is None
    assert decode_account_data(info) is None

    print("  get_account_info not found: PASSED")


def test_get_signature_statuses():
    """Test getSignatureStatuses returns one entry per signature"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient

    print("Testing get_signature_statuses...")

    value = [
        {"slot": 10, "confirmations": 0, "err": None, "confirmationStatus": "confirmed"},
        None,
    ]
    mock_post = AsyncMock(return_value=_response({"context": {"slot": 11}, "value": value}))

    async def run():
        async with RpcClient("https://api.devnet.solana.com") as client:
            return await client.get_signature_statuses(["sigA", "sigB"])

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        statuses = asyncio.run(run())

    assert len(statuses) == 2
    assert statuses[0]["confirmationStatus"] == "confirmed"
    assert statuses[1] is None

    print("  get_signature_statuses: PASSED")


def test_rpc_invalid_json():
    """Test a non-JSON body becomes RpcError instead of a bare ValueError"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient, RpcClientConfig
    from whirlpool_tour.errors import RpcError, ErrorCode

    print("Testing invalid JSON response...")

    response = Mock()
    response.status_code = 200
    response.raise_for_status = Mock()
    response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    mock_post = AsyncMock(return_value=response)

    async def run():
        config = RpcClientConfig(max_retries=3, retry_delay_seconds=0.01)
        async with RpcClient("https://api.devnet.solana.com", config) as client:
            await client.call("getSlot", [])

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        try:
            asyncio.run(run())
            assert False, "Should raise RpcError"
        except RpcError as e:
            assert e.code == ErrorCode.RPC_INVALID_RESPONSE
            assert isinstance(e.original_error, ValueError)
            assert e.endpoint == "https://api.devnet.solana.com"

    assert mock_post.await_count == 1

    print("  Invalid JSON response: PASSED")


def test_get_multiple_accounts_batches():
    """Test getMultipleAccounts is split into requests of at most 100 keys"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient, MAX_MULTIPLE_ACCOUNTS

    print("Testing get_multiple_accounts batching...")

    batch_sizes = []

    async def post(url, json=None, timeout=None):
        keys = json["params"][0]
        batch_sizes.append(len(keys))
        if len(keys) > MAX_MULTIPLE_ACCOUNTS:
            return _response(error={"code": -32602, "message": "Too many inputs provided; max 100"})
        return _response({"context": {"slot": 1}, "value": [{"owner": key} for key in keys]})

    addresses = [f"Addr{i}" for i in range(150)]

    async def run():
        async with RpcClient("https://api.devnet.solana.com") as client:
            empty = await client.get_multiple_accounts([])
            infos = await client.get_multiple_accounts(addresses)
            return empty, infos

    with patch.object(httpx.AsyncClient, "post", new=AsyncMock(side_effect=post)):
        empty, infos = asyncio.run(run())

    assert empty == []
    assert batch_sizes == [100, 50]
    assert [info["owner"] for info in infos] == addresses

    print("  get_multiple_accounts batching: PASSED")


def test_get_minimum_balance_for_rent_exemption():
    """Test rent exemption query passes the data length"""
    import httpx
    from whirlpool_tour.infra.rpc import RpcClient

    print("Testing get_minimum_balance_for_rent_exemption...")

    mock_post = AsyncMock(return_value=_response(2039280))

    async def run():
        async with RpcClient("https://api.devnet.solana.com") as client:
            return await client.get_minimum_balance_for_rent_exemption(165)

    with patch.object(httpx.AsyncClient, "post", new=mock_post):
        lamports = asyncio.run(run())

    assert lamports == 2039280
    body = mock_post.call_args.kwargs["json"]
    assert body["method"] == "getMinimumBalanceForRentExemption"
    assert body["params"] == [165]

    print("  get_minimum_balance_for_rent_exemption: PASSED")


def main():
    """Run all tests"""
    print("=" * 60)
    print("RPC Mock Tests")
    print("=" * 60)

    tests = [
        test_rpc_config_defaults,
        test_rpc_config_override,
        test_rpc_client_init,
        test_rpc_call_success,
        test_rpc_call_error,
        test_rpc_rate_limit,
        test_rpc_timeout,
        test_rpc_endpoint_rotation,
        test_send_transaction_single_attempt,
        test_get_account_info,
        test_get_account_info_not_found,
        test_get_signature_statuses,
        test_rpc_invalid_json,
        test_get_multiple_accounts_batches,
        test_get_minimum_balance_for_rent_exemption,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
