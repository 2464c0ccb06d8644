"""
Rate-limit classification and the retry policy used for RPC calls.

Only throttling errors are worth retrying; everything else is treated as a
permanent request error by the caller.
"""
import re
from dataclasses import dataclass
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential
from shared.utils.clock import Clock, system_clock
import structlog

logger = structlog.get_logger()

RATE_LIMIT_STATUS = 429
RATE_LIMIT_RPC_CODE = -32005  # "limit exceeded" on geth-style endpoints

_RATE_LIMIT_PATTERN = re.compile(
    r"rate[\s_-]?limit|too many requests|limit exceeded|request limit|\b429\b",
    re.IGNORECASE,
)


def _error_codes(exc: BaseException) -> list:
    codes = [getattr(exc, "status", None), getattr(exc, "status_code", None), getattr(exc, "code", None)]
    response = getattr(exc, "response", None)
    if response is not None:
        codes.append(getattr(response, "status_code", None))
        codes.append(getattr(response, "status", None))
    rpc_response = getattr(exc, "rpc_response", None)
    if isinstance(rpc_response, dict):
        error = rpc_response.get("error")
        if isinstance(error, dict):
            codes.append(error.get("code"))
    for arg in exc.args:
        if isinstance(arg, dict):
            codes.append(arg.get("code"))
    return codes


def is_rate_limit_error(exc: BaseException) -> bool:
    codes = _error_codes(exc)
    if RATE_LIMIT_STATUS in codes or RATE_LIMIT_RPC_CODE in codes:
        return True
    return bool(_RATE_LIMIT_PATTERN.search(str(exc)))


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be > 0")

    def retrying(self, operation: str, clock: Clock = system_clock) -> AsyncRetrying:
        """Tenacity controller: retries rate-limit errors only and re-raises the last error."""

        def _log_retry(retry_state):
            logger.warning(
                "rpc_rate_limited",
                operation=operation,
                attempt=retry_state.attempt_number,
                max_attempts=self.max_attempts,
                retry_in=retry_state.next_action.sleep if retry_state.next_action else None,
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, min=self.base_delay, max=self.base_delay * 4),
            retry=retry_if_exception(is_rate_limit_error),
            before_sleep=_log_retry,
            sleep=clock.sleep,
            reraise=True,
        )
