"""
Cycle metrics — records the outcome of each insight cycle.

Entries are appended to JSONL files so they survive restarts and can be
inspected offline; counters are kept in memory for the stats endpoint.
"""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
import structlog

logger = structlog.get_logger()


class CycleMetrics:
    """
    Metrics sink for a single agent.

    - log_cycle: persist a completed cycle (insights found, posts made, sources failed)
    - log_failure: persist a failed task with its error
    - get_stats: in-memory counters since process start
    """

    def __init__(self, agent_name: str, data_dir: Path | str | None = None):
        self.agent_name = agent_name
        self.data_dir = Path(data_dir) if data_dir else None
        self._cycles = 0
        self._insights = 0
        self._posts = 0
        self._failures = 0
        self._last_cycle: dict | None = None

    @property
    def cycle_log_path(self) -> Path | None:
        return self.data_dir / f"{self.agent_name}_cycles.jsonl" if self.data_dir else None

    @property
    def failure_log_path(self) -> Path | None:
        return self.data_dir / f"{self.agent_name}_failures.jsonl" if self.data_dir else None

    def log_cycle(
        self,
        insights_found: int,
        posted: int,
        duration_ms: int,
        fetched: dict[str, int] | None = None,
        failed_sources: list[str] | None = None,
    ):
        self._cycles += 1
        self._insights += insights_found
        self._posts += posted
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "agent": self.agent_name,
            "insights_found": insights_found,
            "posted": posted,
            "duration_ms": duration_ms,
            "fetched": fetched or {},
            "failed_sources": failed_sources or [],
        }
        self._last_cycle = entry
        self._append(self.cycle_log_path, entry)

    def log_failure(self, task: str, error: str = "", context: dict | None = None):
        self._failures += 1
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "agent": self.agent_name,
            "task": task,
            "error": error,
            "context": _safe_serialize(context or {}),
        }
        self._append(self.failure_log_path, entry)
        logger.info("failure_logged", agent=self.agent_name, task=task, error=error[:100])

    def get_recent_cycles(self, limit: int = 10) -> list[dict]:
        path = self.cycle_log_path
        if path is None or not path.exists():
            return [self._last_cycle] if self._last_cycle else []
        cycles = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                try:
                    cycles.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return cycles[-limit:]

    def get_stats(self) -> dict:
        return {
            "agent": self.agent_name,
            "cycles": self._cycles,
            "insights_found": self._insights,
            "posted": self._posts,
            "failures": self._failures,
            "last_cycle": self._last_cycle,
        }

    def _append(self, path: Path | None, entry: dict[str, Any]):
        if path is None:
            return
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except OSError as e:
            logger.error("metrics_write_failed", path=str(path), error=str(e))


def _safe_serialize(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [_safe_serialize(x) for x in obj[:20]]
    if isinstance(obj, dict):
        return {k: _safe_serialize(v) for k, v in list(obj.items())[:20]}
    return str(obj)[:500]
