"""
Scheduled Insights Service — health monitoring and the periodic insight cycle.

Two independent APScheduler jobs drive the service: a health probe against the
RPC endpoint and the insight check (fetch, analyze, optionally publish). The
insight check is also the entry point for interactive callers; it never raises
and always returns a readable summary.
"""
import asyncio
from agents.insights.config import AGENT_NAME, SchedulerConfig, SUMMARY_MAX_INSIGHTS
from agents.insights.models.schemas import CheckResult, HealthState, Insight
from agents.insights.services.analyzer import InsightAnalyzer
from agents.insights.services.chain_client import ChainClient
from agents.insights.services.twitter import TwitterService
from shared.metrics import CycleMetrics
from shared.utils.clock import Clock, system_clock
from shared.utils.scheduler import create_scheduler, start_scheduler, stop_scheduler
import structlog

logger = structlog.get_logger()

SOURCES = ("large_transactions", "new_contracts", "token_transfers")


class ScheduledInsightsService:
    def __init__(
        self,
        client: ChainClient,
        analyzer: InsightAnalyzer | None = None,
        twitter: TwitterService | None = None,
        config: SchedulerConfig | None = None,
        metrics: CycleMetrics | None = None,
        clock: Clock = system_clock,
        scheduler=None,
    ):
        self.client = client
        self.analyzer = analyzer or InsightAnalyzer()
        self.twitter = twitter
        self.config = config or SchedulerConfig()
        self.metrics = metrics or CycleMetrics(AGENT_NAME)
        self.clock = clock
        self.scheduler = scheduler or create_scheduler()
        self._health = HealthState()
        self._busy = False
        self._tasks: set[asyncio.Task] = set()
        self.last_result: CheckResult | None = None

    @property
    def health(self) -> HealthState:
        return self._health

    @property
    def is_healthy(self) -> bool:
        return bool(self._health.is_healthy)

    @property
    def is_busy(self) -> bool:
        return self._busy

    async def initialize(self):
        """Probe the endpoint, keep re-probing on its own timer, and start polling when enabled."""
        await self.perform_health_check()
        self.scheduler.add_job(
            self._health_job, "interval",
            seconds=self.config.health_check_interval_seconds, id="health_check", replace_existing=True,
        )

        if self.config.enabled:
            logger.info(
                "scheduled_insights_starting",
                check_interval_minutes=self.config.check_interval_minutes,
                health_interval_seconds=self.config.health_check_interval_seconds,
                auto_post=self.config.auto_post,
            )
            await self.run_insight_check()
            self.scheduler.add_job(
                self._insight_job, "interval",
                minutes=self.config.check_interval_minutes, id="insight_check", replace_existing=True,
            )
        else:
            logger.info("scheduled_insights_disabled", health_interval_seconds=self.config.health_check_interval_seconds)

        start_scheduler(self.scheduler)

    async def stop(self):
        """Stop the timers and cancel anything still in flight."""
        stop_scheduler(self.scheduler)
        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("scheduled_insights_stopped", cancelled=len(tasks))

    def _track_current_task(self):
        task = asyncio.current_task()
        if task is not None:
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _insight_job(self):
        self._track_current_task()
        try:
            await self.run_insight_check()
        except Exception as e:
            logger.error("insight_job_failed", error=str(e))

    async def _health_job(self):
        self._track_current_task()
        try:
            await self.perform_health_check()
        except Exception as e:
            logger.error("health_job_failed", error=str(e))

    async def perform_health_check(self) -> bool:
        previous = self._health
        self._health = previous.model_copy(update={"status": "checking"})

        block_number = None
        gas_price = None
        error = None
        try:
            block_number = await self.client.get_block_number()
            gas_price = await self.client.get_gas_price()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = str(e)

        healthy = error is None and block_number is not None
        self._health = HealthState(
            status="healthy" if healthy else "unhealthy",
            is_healthy=healthy,
            last_health_check=self.clock.now(),
            last_block_number=block_number if healthy else previous.last_block_number,
            last_gas_price=gas_price if healthy else previous.last_gas_price,
            consecutive_failures=0 if healthy else previous.consecutive_failures + 1,
        )

        if healthy and previous.is_healthy is False:
            logger.info("rpc_recovered", block_number=block_number)
        elif healthy:
            logger.info("health_check_passed", block_number=block_number, gas_price=gas_price)
        else:
            logger.warning(
                "health_check_failed",
                error=error or "endpoint unreachable",
                consecutive_failures=self._health.consecutive_failures,
            )
            self.metrics.log_failure(task="health_check", error=error or "endpoint unreachable")
        return healthy

    async def _fetch_sources(self) -> tuple[dict[str, list], list[str]]:
        results = await asyncio.gather(
            self.client.get_large_transactions(),
            self.client.get_new_contracts(),
            self.client.get_token_transfers(),
            return_exceptions=True,
        )
        fetched: dict[str, list] = {}
        failed: list[str] = []
        for source, result in zip(SOURCES, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.error("insight_source_failed", source=source, error=str(result))
                self.metrics.log_failure(task=f"fetch_{source}", error=str(result))
                failed.append(source)
                fetched[source] = []
            else:
                fetched[source] = list(result or [])
        return fetched, failed

    async def check_and_post_insights(self) -> CheckResult:
        if self._busy:
            logger.info("insight_check_skipped_busy")
            return CheckResult(success=False, text="An insight check is already running. Try again shortly.")

        self._busy = True
        started = self.clock.monotonic()
        try:
            return await self._run_cycle(started)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("insight_check_failed", error=str(e))
            self.metrics.log_failure(task="insight_check", error=str(e))
            result = CheckResult(
                success=False,
                text=f"Could not compute chain insights right now ({type(e).__name__}). Will retry next cycle.",
                duration_ms=self._elapsed_ms(started),
            )
            self.last_result = result
            return result
        finally:
            self._busy = False

    async def _run_cycle(self, started: float) -> CheckResult:
        logger.info("insight_check_started", healthy=self._health.is_healthy)
        fetched, failed = await self._fetch_sources()

        insights = self.analyzer.analyze(
            fetched["large_transactions"],
            fetched["new_contracts"],
            fetched["token_transfers"],
            observed_at=self.clock.now(),
        )
        top = self.analyzer.filter_insights(insights, self.config.min_post_severity)

        posted = 0
        if top and self.config.auto_post and self.twitter is not None:
            posted = await self.twitter.post_insights(top, self.config.max_posts_per_cycle)

        duration_ms = self._elapsed_ms(started)
        counts = {source: len(records) for source, records in fetched.items()}
        self.metrics.log_cycle(
            insights_found=len(top), posted=posted, duration_ms=duration_ms,
            fetched=counts, failed_sources=failed,
        )
        logger.info(
            "insight_check_completed",
            insights_found=len(top),
            posted=posted,
            failed_sources=failed,
            duration_ms=duration_ms,
            **counts,
        )

        result = CheckResult(
            success=len(failed) < len(SOURCES),
            text=self.format_summary(top, posted, failed),
            insights=top,
            posted=posted,
            duration_ms=duration_ms,
            failed_sources=failed,
        )
        self.last_result = result
        return result

    async def run_insight_check(self) -> CheckResult:
        """Run one insight cycle now; safe for timers, HTTP routes, and chat commands."""
        return await self.check_and_post_insights()

    def format_summary(self, insights: list[Insight], posted: int, failed: list[str]) -> str:
        if len(failed) == len(SOURCES):
            return "Chain data is unavailable right now; all data sources failed. Will retry next cycle."

        if insights:
            lines = [
                f"{i}. {insight.title}\n   {insight.description}"
                for i, insight in enumerate(insights[:SUMMARY_MAX_INSIGHTS], start=1)
            ]
            text = f"Found {len(insights)} chain insights:\n\n" + "\n\n".join(lines)
            if len(insights) > SUMMARY_MAX_INSIGHTS:
                text += f"\n\n...and {len(insights) - SUMMARY_MAX_INSIGHTS} more"
        else:
            text = "No significant chain activity detected in recent blocks."

        if self.config.auto_post:
            text += f"\n\nPosted {posted} update(s)."
        if failed:
            text += f"\n\nPartial data: {', '.join(failed)} unavailable."
        if self._health.is_healthy is False:
            text += "\n\nRPC endpoint is currently marked unhealthy."
        return text

    def _elapsed_ms(self, started: float) -> int:
        return int((self.clock.monotonic() - started) * 1000)
