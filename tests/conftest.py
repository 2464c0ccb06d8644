"""
Shared fixtures: a virtual clock, a scripted web3 stand-in, and sample insights.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
import pytest

from agents.insights.config import ChainClientConfig
from agents.insights.models.schemas import Insight
from agents.insights.services.chain_client import ChainClient

WHALE = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x2222222222222222222222222222222222222222"
TOKEN = "0x3333333333333333333333333333333333333333"
CONTRACT = "0x4444444444444444444444444444444444444444"
ONE_ETHER = 10**18


class FakeClock:
    """Virtual time: sleep() only advances the counter and records the delay."""

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.current

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.current, tz=timezone.utc)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds

    def advance(self, seconds: float):
        self.current += seconds


class FakeEth:
    """
    Mimics the awaitable properties of AsyncWeb3.eth.

    Set `gas_price_source` / `block_number_source` to AsyncMocks; every
    property access counts as one RPC call.
    """

    def __init__(self):
        self.gas_price_source = AsyncMock(return_value=5 * 10**9)
        self.block_number_source = AsyncMock(return_value=1000)
        self.get_block = AsyncMock(return_value={"number": 1000, "timestamp": 1_700_000_000, "transactions": []})
        self.get_logs = AsyncMock(return_value=[])
        self.get_balance = AsyncMock(return_value=2 * ONE_ETHER)
        self.get_transaction_receipt = AsyncMock(return_value={"contractAddress": None, "gasUsed": 0})
        self.contract = MagicMock()

    @property
    def gas_price(self):
        return self.gas_price_source()

    @property
    def block_number(self):
        return self.block_number_source()


class FakeWeb3:
    def __init__(self):
        self.eth = FakeEth()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def w3():
    return FakeWeb3()


@pytest.fixture
def client_config():
    return ChainClientConfig(block_range=50, retry_attempts=3, retry_base_delay=0.5, cache_ttl_ms=60_000)


@pytest.fixture
def client(client_config, w3, clock):
    return ChainClient(config=client_config, w3=w3, clock=clock)


def make_insight(
    type="large_transfer",
    title="🐋 Whale Alert: 1,500.00 BNB Transfer",
    severity="high",
    data=None,
    description="A transfer of 1,500.00 BNB (~$900,000) was detected in block 1000",
) -> Insight:
    if data is None:
        data = {
            "hash": "0x" + "ab" * 32,
            "from_address": WHALE,
            "to_address": RECIPIENT,
            "value": "1500",
            "block_number": 1000,
            "timestamp": 1_700_000_000,
            "gas_price": "0.000000005",
            "gas_limit": "21000",
            "native_symbol": "BNB",
        }
    return Insight(
        type=type,
        title=title,
        description=description,
        data=data,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        severity=severity,
    )


@pytest.fixture
def whale_insight():
    return make_insight()


@pytest.fixture
def long_whale_insight():
    """A whale transfer whose amount renders as a very long number."""
    data = {
        "hash": "0x" + "cd" * 32,
        "from_address": WHALE,
        "to_address": RECIPIENT,
        "value": "123456789012345678901234567890123456789.123456789",
        "block_number": 99_999_999,
        "timestamp": 1_700_000_000,
        "gas_price": "0.000000005",
        "native_symbol": "BNB",
    }
    return make_insight(
        title="🐋 Whale Alert: 123,456,789,012,345,678,901,234,567,890,123,456,789.12 BNB Transfer",
        data=data,
    )


@pytest.fixture
def insight_factory():
    return make_insight
