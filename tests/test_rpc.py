"""Tests for the JSON-RPC client using httpx.MockTransport."""
import base64
import json

import base58
import httpx
import pytest

from sasdecode.account.records import Identifier
from sasdecode.rpc.client import RetryConfig, RpcError, SolanaRpcClient, account_data_bytes

ADDRESS = Identifier(b"\x0a" * 32)


def make_client(handler, attempts=3):
    return SolanaRpcClient(
        "https://rpc.test",
        retry=RetryConfig(max_attempts=attempts, base_delay_ms=0, max_delay_ms=0),
        transport=httpx.MockTransport(handler),
    )


def rpc_result(request, result):
    body = json.loads(request.content)
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


class TestAccountDataBytes:
    def test_base64(self):
        assert account_data_bytes([base64.b64encode(b"\x00abc").decode(), "base64"]) == b"\x00abc"

    def test_base58(self):
        assert account_data_bytes([base58.b58encode(b"\x02xyz").decode(), "base58"]) == b"\x02xyz"

    def test_raw_bytes(self):
        assert account_data_bytes(bytearray(b"\x01")) == b"\x01"

    @pytest.mark.parametrize("data", [None, [], {"parsed": {}}, ["abc", "zstd"], 5])
    def test_unsupported(self, data):
        with pytest.raises(ValueError):
            account_data_bytes(data)


class TestSolanaRpcClient:
    def test_get_account_info(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return rpc_result(request, {
                "context": {"slot": 1},
                "value": {"data": [base64.b64encode(b"\x00data").decode(), "base64"], "owner": "x"},
            })

        with make_client(handler) as client:
            assert client.get_account_info(ADDRESS) == b"\x00data"
        assert seen["body"]["method"] == "getAccountInfo"
        assert seen["body"]["params"][0] == str(ADDRESS)
        assert seen["body"]["params"][1]["encoding"] == "base64"

    def test_missing_account(self):
        with make_client(lambda r: rpc_result(r, {"context": {"slot": 1}, "value": None})) as client:
            assert client.get_account_info(ADDRESS) is None

    def test_get_block(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return rpc_result(request, {"transactions": []})

        with make_client(handler) as client:
            assert client.get_block(123) == {"transactions": []}
        params = seen["body"]["params"]
        assert params[0] == 123
        assert params[1]["encoding"] == "jsonParsed"
        assert params[1]["maxSupportedTransactionVersion"] == 0

    def test_null_block(self):
        with make_client(lambda r: rpc_result(r, None)) as client:
            with pytest.raises(RpcError):
                client.get_block(5)

    def test_rpc_error_object(self):
        def handler(request):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1,
                                             "error": {"code": -32602, "message": "Invalid param"}})

        with make_client(handler) as client:
            with pytest.raises(RpcError) as exc:
                client.get_account_info(ADDRESS)
        assert exc.value.code == -32602
        assert "Invalid param" in str(exc.value)

    def test_retries_transient_status(self):
        calls = []

        def handler(request):
            calls.append(1)
            if len(calls) < 3:
                return httpx.Response(503)
            return rpc_result(request, {"value": None})

        with make_client(handler) as client:
            assert client.get_account_info(ADDRESS) is None
        assert len(calls) == 3

    def test_gives_up_after_attempts(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(429)

        with make_client(handler, attempts=2) as client:
            with pytest.raises(RpcError):
                client.get_account_info(ADDRESS)
        assert len(calls) == 2

    def test_retries_transport_errors(self):
        calls = []

        def handler(request):
            calls.append(1)
            if len(calls) == 1:
                raise httpx.ConnectError("boom", request=request)
            return rpc_result(request, {"value": None})

        with make_client(handler) as client:
            assert client.get_account_info(ADDRESS) is None
        assert len(calls) == 2

    def test_transport_error_propagates(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        with make_client(handler, attempts=1) as client:
            with pytest.raises(httpx.ConnectError):
                client.get_account_info(ADDRESS)

    def test_non_retryable_status(self):
        with make_client(lambda r: httpx.Response(400, text="bad")) as client:
            with pytest.raises(RpcError):
                client.get_account_info(ADDRESS)

    def test_string_error_member(self):
        def handler(request):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": "node is behind"})

        with make_client(handler) as client:
            with pytest.raises(RpcError) as exc:
                client.get_account_info(ADDRESS)
        assert exc.value.code is None
        assert "node is behind" in str(exc.value)

    def test_zero_attempts_still_sends_once(self):
        calls = []

        def handler(request):
            calls.append(1)
            return rpc_result(request, {"value": None})

        with make_client(handler, attempts=0) as client:
            assert client.get_account_info(ADDRESS) is None
        assert len(calls) == 1
