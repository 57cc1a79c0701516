import re
from decimal import Decimal, InvalidOperation, localcontext

from web3 import Web3
from eth_account import Account

from funding_errors import ValidationError, MalformedResponseError

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
HEX_RE = re.compile(r"^0x[0-9a-fA-F]+$")

def validate_address(address) -> str:
    if not isinstance(address, str) or not ADDRESS_RE.match(address):
        raise ValidationError(f"invalid wallet address: {address!r} (want 0x + 40 hex chars)")
    return address

def validate_key(value, what="private key") -> str:
    # never echo the value back, it's a secret
    if not isinstance(value, str) or not KEY_RE.match(value.strip()):
        raise ValidationError(f"invalid {what}: expected 64 hex chars (optional 0x prefix)")
    v = value.strip()
    return v if v.startswith("0x") else "0x" + v

def derive_address(private_key: str) -> str:
    return Account.from_key(validate_key(private_key)).address

def parse_amount(value, what="amount") -> Decimal:
    """Positive decimal ETH amount from config/operator input. Floats go through str() so 0.1 stays 0.1."""
    if isinstance(value, bool):
        raise ValidationError(f"invalid {what}: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"invalid {what}: {value!r}") from None
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"invalid {what}: {value!r} (must be > 0)")
    return amount

def eth_to_wei(amount) -> int:
    amount = parse_amount(amount)
    try:
        wei = Web3.to_wei(amount, "ether")
    except ValueError as e:
        raise ValidationError(f"invalid amount: {amount} ETH ({e})") from None
    # sub-wei fractions round up so the target is never below what was asked for
    with localcontext() as ctx:
        ctx.prec = 999
        exact = amount * Decimal(10**18)
    if Decimal(wei) < exact:
        wei += 1
    return wei

def parse_hex_wei(value) -> int:
    if not isinstance(value, str) or not HEX_RE.match(value):
        raise MalformedResponseError(f"balance is not a 0x-prefixed hex string: {value!r}")
    return int(value, 16)

def wei_to_eth(wei: int) -> Decimal:
    return Decimal(Web3.from_wei(wei, "ether"))

def fmt_eth(wei: int) -> str:
    return f"{wei_to_eth(wei):.6f}"

def display_address(address: str) -> str:
    return Web3.to_checksum_address(address) if ADDRESS_RE.match(address or "") else str(address)
