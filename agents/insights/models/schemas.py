from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field

InsightType = Literal["large_transfer", "new_contract", "token_transfer", "token_launch"]
Severity = Literal["low", "medium", "high"]
HealthStatus = Literal["uninitialized", "checking", "healthy", "unhealthy"]

SEVERITY_ORDER = {"low": 0, "medium": 1, "high": 2}


class Transaction(BaseModel):
    hash: str
    from_address: str = Field(alias="from")
    to_address: str = Field(default="", alias="to")
    value: str                      # native units, plain decimal
    block_number: int
    timestamp: int                  # unix seconds
    gas_price: str = "0"            # native units
    gas_limit: str = "0"            # tx "gas" field; usage needs a receipt

    model_config = {"frozen": True, "populate_by_name": True}


class ContractDeployment(BaseModel):
    hash: str
    creator: str
    contract_address: str
    block_number: int
    timestamp: int
    gas_used: str = "0"

    model_config = {"frozen": True}


class TransferEvent(BaseModel):
    hash: str
    token_address: str
    from_address: str = Field(alias="from")
    to_address: str = Field(alias="to")
    value: str                      # raw token units
    token_symbol: str = "Unknown"
    token_name: str = "Unknown"
    block_number: int
    timestamp: Optional[int] = None

    model_config = {"frozen": True, "populate_by_name": True}


class BlockWindow(BaseModel):
    from_block: int
    to_block: int

    model_config = {"frozen": True}


class Insight(BaseModel):
    type: InsightType
    title: str
    description: str
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    severity: Severity

    model_config = {"frozen": True}

    @property
    def key(self) -> str:
        return f"{self.type}-{self.title}"


class HealthState(BaseModel):
    status: HealthStatus = "uninitialized"
    is_healthy: Optional[bool] = None
    last_health_check: Optional[datetime] = None
    last_block_number: Optional[int] = None
    last_gas_price: Optional[str] = None
    consecutive_failures: int = 0

    model_config = {"frozen": True}


class CheckResult(BaseModel):
    success: bool
    text: str
    insights: list[Insight] = Field(default_factory=list)
    posted: int = 0
    duration_ms: int = 0
    failed_sources: list[str] = Field(default_factory=list)


class InsightResponse(BaseModel):
    type: str
    title: str
    description: str
    severity: str
    timestamp: datetime


class CheckResponse(BaseModel):
    success: bool
    text: str
    posted: int
    duration_ms: int
    failed_sources: list[str]
    insights: list[InsightResponse]


class HealthResponse(BaseModel):
    status: str = "ok"
    agent: str = "insights"
    version: str = "1.0.0"
    rpc_status: str = "uninitialized"
    is_healthy: Optional[bool] = None
    last_health_check: Optional[datetime] = None
    last_block_number: Optional[int] = None
    last_gas_price: Optional[str] = None
