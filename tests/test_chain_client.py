"""
Tests for the chain client: caching, rate-limit retries, and graceful defaults.
"""
from unittest.mock import AsyncMock
import pytest
from agents.insights.config import ChainClientConfig
from agents.insights.services.chain_client import ChainClient, compute_block_window
from agents.insights.services.decoder import TRANSFER_TOPIC
from tests.conftest import WHALE, RECIPIENT, TOKEN, CONTRACT, ONE_ETHER


class RateLimitError(Exception):
    def __init__(self):
        super().__init__({"code": -32005, "message": "limit exceeded"})


def _topic(address: str) -> str:
    return "0x" + address[2:].rjust(64, "0")


def _transfer_log(token: str = TOKEN, amount: int = 1000, block: int = 990) -> dict:
    return {
        "transactionHash": "0x" + "ef" * 32,
        "address": token,
        "topics": [TRANSFER_TOPIC, _topic(WHALE), _topic(RECIPIENT)],
        "data": hex(amount),
        "blockNumber": block,
    }


class TestBlockWindow:
    def test_window_ends_at_current_block(self):
        window = compute_block_window(1000, 50)
        assert window.from_block == 950
        assert window.to_block == 1000

    def test_window_never_starts_below_genesis(self):
        window = compute_block_window(10, 50)
        assert window.from_block == 0
        assert window.to_block == 10


class TestCaching:
    @pytest.mark.asyncio
    async def test_repeat_read_within_ttl_hits_cache(self, client, w3):
        first = await client.get_gas_price()
        second = await client.get_gas_price()

        assert first == second == "0.000000005"
        assert w3.eth.gas_price_source.call_count == 1
        assert client.stats()["cache_hits"] == 1

    @pytest.mark.asyncio
    async def test_expired_entry_triggers_exactly_one_fetch(self, client, w3, clock):
        await client.get_gas_price()
        clock.advance(61)
        await client.get_gas_price()
        await client.get_gas_price()

        assert w3.eth.gas_price_source.call_count == 2

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, client, w3):
        w3.eth.gas_price_source.side_effect = [ValueError("boom"), 3 * 10**9]

        assert await client.get_gas_price() == "0"
        assert await client.get_gas_price() == "0.000000003"
        assert w3.eth.gas_price_source.call_count == 2

    @pytest.mark.asyncio
    async def test_block_number_is_always_live(self, client, w3):
        assert await client.get_block_number() == 1000
        assert await client.get_block_number() == 1000
        assert w3.eth.block_number_source.call_count == 2


class TestRetry:
    @pytest.mark.asyncio
    async def test_rate_limit_then_success_retries_once(self, client, w3, clock):
        w3.eth.gas_price_source.side_effect = [RateLimitError(), 5 * 10**9]

        assert await client.get_gas_price() == "0.000000005"
        assert w3.eth.gas_price_source.call_count == 2
        assert len(clock.sleeps) == 1
        assert clock.sleeps[0] > 0

    @pytest.mark.asyncio
    async def test_persistent_rate_limit_returns_default_after_all_attempts(self, client, w3, clock):
        w3.eth.gas_price_source.side_effect = RateLimitError()

        assert await client.get_gas_price() == "0"
        assert w3.eth.gas_price_source.call_count == 3
        assert len(clock.sleeps) == 2
        assert all(delay > 0 for delay in clock.sleeps)
        stats = client.stats()
        assert stats["failures"] == 1
        assert stats["rate_limited"] == 1

    @pytest.mark.asyncio
    async def test_backoff_grows_between_attempts(self, w3, clock):
        client = ChainClient(
            config=ChainClientConfig(retry_attempts=4, retry_base_delay=0.5), w3=w3, clock=clock,
        )
        w3.eth.gas_price_source.side_effect = RateLimitError()

        await client.get_gas_price()

        assert clock.sleeps == sorted(clock.sleeps)
        assert clock.sleeps[-1] > clock.sleeps[0]

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, client, w3, clock):
        w3.eth.gas_price_source.side_effect = ConnectionError("connection refused")

        assert await client.get_gas_price() == "0"
        assert w3.eth.gas_price_source.call_count == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_unreachable_endpoint_block_number_is_none(self, client, w3):
        w3.eth.block_number_source.side_effect = ConnectionError("connection refused")
        assert await client.get_block_number() is None


class TestReads:
    @pytest.mark.asyncio
    async def test_token_transfers_query_the_block_window(self, client, w3):
        w3.eth.get_logs.return_value = [_transfer_log(), {"topics": [TRANSFER_TOPIC], "data": "0x"}]

        transfers = await client.get_token_transfers()

        params = w3.eth.get_logs.call_args.args[0]
        assert params["fromBlock"] == 950
        assert params["toBlock"] == 1000
        assert params["topics"] == [TRANSFER_TOPIC]
        assert "address" not in params
        assert len(transfers) == 1
        assert transfers[0].value == "1000"
        assert transfers[0].from_address.lower() == WHALE

    @pytest.mark.asyncio
    async def test_token_transfers_filter_by_token(self, client, w3):
        await client.get_token_transfers(token_address=TOKEN)

        params = w3.eth.get_logs.call_args.args[0]
        assert params["address"].lower() == TOKEN

    @pytest.mark.asyncio
    async def test_token_transfers_failure_returns_empty(self, client, w3):
        w3.eth.get_logs.side_effect = ValueError("query returned more than 10000 results")
        assert await client.get_token_transfers() == []

    @pytest.mark.asyncio
    async def test_large_transactions_filters_by_threshold(self, client, w3):
        w3.eth.get_block.return_value = {
            "number": 1000,
            "timestamp": 1_700_000_000,
            "transactions": [
                {"hash": "0x" + "01" * 32, "from": WHALE, "to": RECIPIENT, "value": 150 * ONE_ETHER,
                 "gasPrice": 3 * 10**9, "gas": 21000},
                {"hash": "0x" + "02" * 32, "from": WHALE, "to": RECIPIENT, "value": 5 * ONE_ETHER,
                 "gasPrice": 3 * 10**9, "gas": 21000},
            ],
        }

        found = await client.get_large_transactions()

        assert len(found) == 1
        assert found[0].value == "150"
        assert found[0].block_number == 1000
        assert found[0].gas_price == "0.000000003"
        assert found[0].gas_limit == "21000"

    @pytest.mark.asyncio
    async def test_new_contracts_use_receipt_address(self, client, w3):
        w3.eth.get_block.return_value = {
            "number": 1000,
            "timestamp": 1_700_000_000,
            "transactions": [
                {"hash": "0x" + "03" * 32, "from": WHALE, "to": None, "value": 0, "input": "0x6080604052"},
                {"hash": "0x" + "04" * 32, "from": WHALE, "to": RECIPIENT, "value": 0, "input": "0x"},
            ],
        }
        w3.eth.get_transaction_receipt.return_value = {"contractAddress": CONTRACT, "gasUsed": 6_000_000}

        deployments = await client.get_new_contracts()

        assert len(deployments) == 1
        assert deployments[0].contract_address == CONTRACT
        assert deployments[0].gas_used == "6000000"
        assert w3.eth.get_transaction_receipt.call_count == 1

    @pytest.mark.asyncio
    async def test_native_balance_in_ether(self, client):
        assert await client.get_token_balance(WHALE) == "2"

    @pytest.mark.asyncio
    async def test_token_balance_is_raw_units(self, client, w3):
        balance_of = w3.eth.contract.return_value.functions.balanceOf
        balance_of.return_value.call = AsyncMock(return_value=12_345)

        assert await client.get_token_balance(WHALE, TOKEN) == "12345"

    @pytest.mark.asyncio
    async def test_balance_failure_returns_zero(self, client, w3):
        w3.eth.get_balance.side_effect = ConnectionError("down")
        assert await client.get_token_balance(WHALE) == "0"


class TestConfig:
    def test_invalid_values_fall_back_to_defaults(self):
        config = ChainClientConfig(block_range=-5, retry_attempts="abc", cache_ttl_ms=0, rpc_url="  ")
        assert config.block_range == 100
        assert config.retry_attempts == 3
        assert config.cache_ttl_ms == 60_000
        assert config.rpc_url == "https://bsc-dataseed.binance.org/"

    def test_ttl_is_exposed_in_seconds(self):
        assert ChainClientConfig(cache_ttl_ms=1500).cache_ttl_seconds == 1.5