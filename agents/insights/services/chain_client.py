"""
Chain Client — the single point of contact with the RPC endpoint.

Every read goes through the TTL cache and the rate-limit retry policy. Failures
never reach the caller: each operation degrades to a documented default and
the error is logged.
"""
import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable
from web3 import AsyncWeb3, Web3
from shared.utils.clock import Clock, system_clock
from shared.web3_client import get_async_web3
from agents.insights.config import ChainClientConfig
from agents.insights.models.schemas import (
    BlockWindow, Transaction, ContractDeployment, TransferEvent,
)
from agents.insights.services.cache import TTLCache, cache_key
from agents.insights.services.retry import RetryPolicy, is_rate_limit_error
from agents.insights.services.decoder import (
    TRANSFER_TOPIC, ERC20_BALANCE_ABI, decode_transaction, decode_deployment,
    decode_transfer_log, format_units, is_contract_creation,
)
import structlog

logger = structlog.get_logger()


def compute_block_window(current_block: int, block_range: int) -> BlockWindow:
    return BlockWindow(from_block=max(0, current_block - block_range), to_block=current_block)


class ChainClient:
    def __init__(
        self,
        config: ChainClientConfig | None = None,
        w3: AsyncWeb3 | None = None,
        clock: Clock = system_clock,
    ):
        self.config = config or ChainClientConfig()
        self.clock = clock
        self.w3 = w3 if w3 is not None else get_async_web3(self.config.rpc_url, self.config.timeout)
        self.retry_policy = RetryPolicy(
            max_attempts=self.config.retry_attempts,
            base_delay=self.config.retry_base_delay,
        )
        self.cache = TTLCache(self.config.cache_ttl_seconds, clock=clock)
        self._stats = {"calls": 0, "cache_hits": 0, "failures": 0, "rate_limited": 0}
        logger.info(
            "chain_client_initialized",
            rpc_url=self.config.rpc_url,
            block_range=self.config.block_range,
            retry_attempts=self.config.retry_attempts,
            cache_ttl_ms=self.config.cache_ttl_ms,
        )

    @property
    def block_range(self) -> int:
        return self.config.block_range

    def stats(self) -> dict:
        return {**self._stats, "cache_entries": len(self.cache)}

    async def _call(self, operation: str, fetch: Callable[[], Awaitable[Any]], default: Any) -> Any:
        """Run fetch under the retry policy; any failure is logged and turned into the default."""

        async def _attempt():
            self._stats["calls"] += 1
            return await fetch()

        try:
            return await self.retry_policy.retrying(operation, clock=self.clock)(_attempt)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._stats["failures"] += 1
            if is_rate_limit_error(e):
                self._stats["rate_limited"] += 1
                logger.error(
                    "rpc_retries_exhausted",
                    operation=operation,
                    attempts=self.retry_policy.max_attempts,
                    error=str(e),
                )
            else:
                logger.error("rpc_call_failed", operation=operation, error=str(e), error_type=type(e).__name__)
            return default

    async def _cached(self, key: str, operation: str, fetch: Callable[[], Awaitable[Any]], default: Any) -> Any:
        hit, value = self.cache.lookup(key)
        if hit:
            self._stats["cache_hits"] += 1
            logger.debug("rpc_cache_hit", key=key)
            return value

        sentinel = object()
        result = await self._call(operation, fetch, sentinel)
        if result is sentinel:
            return default
        self.cache.set(key, result)
        return result

    async def get_block_number(self) -> int | None:
        """Uncached liveness read; None signals the endpoint could not be reached."""

        async def fetch():
            return int(await self.w3.eth.block_number)

        return await self._call("get_block_number", fetch, None)

    async def get_gas_price(self) -> str:
        async def fetch():
            return format_units(await self.w3.eth.gas_price)

        return await self._cached(cache_key("gas_price"), "get_gas_price", fetch, "0")

    async def get_token_balance(self, address: str, token_address: str | None = None) -> str:
        async def fetch():
            account = Web3.to_checksum_address(address)
            if not token_address:
                return format_units(await self.w3.eth.get_balance(account))
            contract = self.w3.eth.contract(
                address=Web3.to_checksum_address(token_address),
                abi=ERC20_BALANCE_ABI,
            )
            balance = await contract.functions.balanceOf(account).call()
            return str(balance)

        key = cache_key("balance", address.lower(), (token_address or "native").lower())
        return await self._cached(key, "get_token_balance", fetch, "0")

    async def get_large_transactions(
        self, threshold: float | str | None = None, limit: int = 10,
    ) -> list[Transaction]:
        """Transactions in the latest block whose value is at least threshold (native units)."""
        try:
            min_value = Decimal(str(threshold)) if threshold is not None else None
        except InvalidOperation:
            min_value = None
        if min_value is None or min_value < 0:
            min_value = Decimal(str(self.config.large_tx_threshold))

        async def fetch():
            block = await self.w3.eth.get_block("latest", full_transactions=True)
            found = []
            for tx in block.get("transactions", []):
                if isinstance(tx, (bytes, str)):
                    continue
                decoded = decode_transaction(tx, block)
                if Decimal(decoded.value) >= min_value:
                    found.append(decoded)
                    if len(found) >= limit:
                        break
            return found

        key = cache_key("large_transactions", min_value, limit)
        return await self._cached(key, "get_large_transactions", fetch, [])

    async def get_new_contracts(self, limit: int = 20) -> list[ContractDeployment]:
        """Contract deployments in the latest block, confirmed by a receipt contractAddress."""

        async def fetch():
            block = await self.w3.eth.get_block("latest", full_transactions=True)
            deployments = []
            for tx in block.get("transactions", []):
                if isinstance(tx, (bytes, str)) or not is_contract_creation(tx):
                    continue
                receipt = await self.w3.eth.get_transaction_receipt(tx["hash"])
                deployment = decode_deployment(tx, receipt, block)
                if deployment:
                    deployments.append(deployment)
                    if len(deployments) >= limit:
                        break
            return deployments

        return await self._cached(cache_key("new_contracts", limit), "get_new_contracts", fetch, [])

    async def get_token_transfers(
        self, token_address: str | None = None, limit: int = 50,
    ) -> list[TransferEvent]:
        """ERC-20 Transfer events over the configured block window ending at the current block."""

        async def fetch():
            current = int(await self.w3.eth.block_number)
            window = compute_block_window(current, self.block_range)
            params = {
                "fromBlock": window.from_block,
                "toBlock": window.to_block,
                "topics": [TRANSFER_TOPIC],
            }
            if token_address:
                params["address"] = Web3.to_checksum_address(token_address)
            logs = await self.w3.eth.get_logs(params)
            transfers = []
            for log in logs:
                transfer = decode_transfer_log(log)
                if transfer:
                    transfers.append(transfer)
                    if len(transfers) >= limit:
                        break
            logger.debug(
                "token_transfers_fetched",
                from_block=window.from_block,
                to_block=window.to_block,
                logs=len(logs),
                transfers=len(transfers),
            )
            return transfers

        key = cache_key("token_transfers", (token_address or "any").lower(), limit)
        return await self._cached(key, "get_token_transfers", fetch, [])
