"""
Decoder — Converts raw web3 blocks, receipts, and logs into insight records.
"""
from decimal import Decimal
from typing import Any
from web3 import Web3
from agents.insights.models.schemas import Transaction, ContractDeployment, TransferEvent

# keccak256("Transfer(address,address,uint256)")
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

ERC20_BALANCE_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "balance", "type": "uint256"}],
    }
]


def as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(bytes(value), "big") if value else 0
    if isinstance(value, str):
        if not value or value == "0x":
            return 0
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


def to_hex(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


def as_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    text = str(value)
    text = text[2:] if text.startswith("0x") else text
    return bytes.fromhex(text.rjust(len(text) + len(text) % 2, "0"))


def format_units(wei: Any, unit: str = "ether") -> str:
    """Wei to a plain decimal string, e.g. 5 gwei -> '0.000000005' ether."""
    value = Web3.from_wei(as_int(wei), unit)
    if value == 0:
        return "0"
    return format(Decimal(value).normalize(), "f")


def topic_to_address(topic: Any) -> str:
    return Web3.to_checksum_address("0x" + as_bytes(topic)[-20:].hex())


def decode_transaction(tx: dict, block: dict) -> Transaction:
    return Transaction(
        hash=to_hex(tx.get("hash")),
        from_address=tx.get("from") or "",
        to_address=tx.get("to") or "",
        value=format_units(tx.get("value", 0)),
        block_number=as_int(block.get("number")),
        timestamp=as_int(block.get("timestamp")),
        gas_price=format_units(tx.get("gasPrice", 0)),
        gas_limit=str(as_int(tx.get("gas", 0))),
    )


def is_contract_creation(tx: dict) -> bool:
    """Contract creations have no recipient and carry init code."""
    payload = tx.get("input") or b""
    return not tx.get("to") and len(as_bytes(payload)) > 0


def decode_deployment(tx: dict, receipt: dict, block: dict) -> ContractDeployment | None:
    contract_address = receipt.get("contractAddress") if receipt else None
    if not contract_address:
        return None
    return ContractDeployment(
        hash=to_hex(tx.get("hash")),
        creator=tx.get("from") or "",
        contract_address=contract_address,
        block_number=as_int(block.get("number")),
        timestamp=as_int(block.get("timestamp")),
        gas_used=str(as_int(receipt.get("gasUsed", 0))),
    )


def decode_transfer_log(log: dict) -> TransferEvent | None:
    """Decode an ERC-20 Transfer log; anything else (e.g. ERC-721 with an indexed id) is skipped."""
    topics = log.get("topics") or []
    if len(topics) != 3 or to_hex(topics[0]).lower() != TRANSFER_TOPIC:
        return None
    return TransferEvent(
        hash=to_hex(log.get("transactionHash")),
        token_address=log.get("address") or "",
        from_address=topic_to_address(topics[1]),
        to_address=topic_to_address(topics[2]),
        value=str(as_int(log.get("data"))),
        block_number=as_int(log.get("blockNumber")),
    )
