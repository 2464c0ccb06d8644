"""
Insight Analyzer — Classifies one poll cycle's chain data into severity-tagged insights.

Pure functions over already-fetched records: no I/O, and a record that does
not qualify is dropped by an explicit threshold rather than raising.
"""
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from agents.insights.config import (
    WHALE_THRESHOLD, SEVERITY_THRESHOLDS, HIGH_GAS_CONTRACT_THRESHOLD,
    TOKEN_ACTIVITY_MIN_TRANSFERS, TOKEN_ACTIVITY_HIGH_TRANSFERS, NATIVE_USD_ESTIMATE,
)
from agents.insights.models.schemas import (
    Insight, Transaction, ContractDeployment, TransferEvent, SEVERITY_ORDER,
)


def _to_datetime(timestamp: int | None, fallback: datetime) -> datetime:
    if not timestamp:
        return fallback
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _determine_severity(value: Decimal) -> str | None:
    for level, threshold in sorted(SEVERITY_THRESHOLDS.items(), key=lambda x: x[1], reverse=True):
        if value >= threshold:
            return level
    return None


def _short(address: str) -> str:
    return f"{address[:10]}..." if len(address) > 10 else address


class InsightAnalyzer:
    def __init__(self, native_symbol: str = "BNB"):
        self.native_symbol = native_symbol

    def analyze_transactions(
        self, transactions: list[Transaction], observed_at: datetime | None = None,
    ) -> list[Insight]:
        observed_at = observed_at or datetime.now(timezone.utc)
        insights = []
        for tx in transactions:
            try:
                value = Decimal(tx.value)
            except InvalidOperation:
                continue
            if not value.is_finite() or value < WHALE_THRESHOLD:
                continue
            severity = _determine_severity(value)
            if severity is None:
                continue
            usd = value * NATIVE_USD_ESTIMATE
            insights.append(Insight(
                type="large_transfer",
                title=f"🐋 Whale Alert: {value:,.2f} {self.native_symbol} Transfer",
                description=(
                    f"A transfer of {value:,.2f} {self.native_symbol} "
                    f"(~${usd:,.0f}) was detected in block {tx.block_number}"
                ),
                data={**tx.model_dump(), "native_symbol": self.native_symbol},
                timestamp=_to_datetime(tx.timestamp, observed_at),
                severity=severity,
            ))
        return insights

    def analyze_new_contracts(
        self, contracts: list[ContractDeployment], observed_at: datetime | None = None,
    ) -> list[Insight]:
        observed_at = observed_at or datetime.now(timezone.utc)
        insights = []
        for contract in contracts:
            try:
                gas_used = int(contract.gas_used or 0)
            except ValueError:
                gas_used = 0
            timestamp = _to_datetime(contract.timestamp, observed_at)
            data = {**contract.model_dump(), "native_symbol": self.native_symbol}

            # Heavy deployments are usually tokens or DeFi protocols
            if gas_used >= HIGH_GAS_CONTRACT_THRESHOLD:
                insights.append(Insight(
                    type="token_launch",
                    title="🚀 Potential Token Launch Detected",
                    description=f"New contract deployed with high gas usage ({gas_used / 1e6:.2f}M gas)",
                    data=data,
                    timestamp=timestamp,
                    severity="high" if gas_used >= HIGH_GAS_CONTRACT_THRESHOLD * 2 else "medium",
                ))
            else:
                insights.append(Insight(
                    type="new_contract",
                    title="📝 New Smart Contract Deployed",
                    description=f"Contract deployed at {_short(contract.contract_address)}",
                    data=data,
                    timestamp=timestamp,
                    severity="low",
                ))
        return insights

    def analyze_token_transfers(
        self, transfers: list[TransferEvent], observed_at: datetime | None = None,
    ) -> list[Insight]:
        observed_at = observed_at or datetime.now(timezone.utc)
        groups: dict[str, list[TransferEvent]] = defaultdict(list)
        for transfer in transfers:
            groups[transfer.token_address.lower()].append(transfer)

        insights = []
        for token_transfers in groups.values():
            count = len(token_transfers)
            if count < TOKEN_ACTIVITY_MIN_TRANSFERS:
                continue
            first = token_transfers[0]
            symbol = first.token_symbol if first.token_symbol != "Unknown" else _short(first.token_address)
            latest = max((t.timestamp or 0) for t in token_transfers)
            insights.append(Insight(
                type="token_transfer",
                title=f"📈 High Activity: {symbol} Token",
                description=f"{count} transfers detected for {symbol} in recent blocks",
                data={
                    **first.model_dump(),
                    "transfer_count": count,
                    "native_symbol": self.native_symbol,
                },
                timestamp=_to_datetime(latest, observed_at),
                severity="high" if count >= TOKEN_ACTIVITY_HIGH_TRANSFERS else "medium",
            ))
        return insights

    def analyze(
        self,
        transactions: list[Transaction],
        contracts: list[ContractDeployment],
        transfers: list[TransferEvent],
        observed_at: datetime | None = None,
    ) -> list[Insight]:
        return [
            *self.analyze_transactions(transactions, observed_at),
            *self.analyze_new_contracts(contracts, observed_at),
            *self.analyze_token_transfers(transfers, observed_at),
        ]

    def filter_insights(self, insights: list[Insight], min_severity: str = "medium") -> list[Insight]:
        """Drop insights below min_severity, de-duplicate by title, most severe and newest first."""
        floor = SEVERITY_ORDER.get(min_severity, SEVERITY_ORDER["medium"])
        unique: dict[str, Insight] = {}
        for insight in insights:
            if SEVERITY_ORDER[insight.severity] < floor:
                continue
            if insight.title not in unique or insight.severity == "high":
                unique[insight.title] = insight
        return sorted(
            unique.values(),
            key=lambda i: (SEVERITY_ORDER[i.severity], i.timestamp),
            reverse=True,
        )
