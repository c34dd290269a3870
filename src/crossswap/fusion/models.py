"""Value objects for the Fusion+ cross-chain order lifecycle.

Upstream responses are parsed into these models at the boundary. Token
amounts are raw integer units kept as decimal strings, never floats.
"""

import re
import time
import uuid
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from web3 import Web3

# Native token placeholder used by 1inch for ETH/BNB/MATIC/...
NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

_INT_STRING = re.compile(r"^[0-9]+$")
_HEX_STRING = re.compile(r"^0x[0-9a-fA-F]*$")
_SIGNATURE = re.compile(r"^0x[0-9a-fA-F]{130}$")


def is_positive_int_string(value: Any) -> bool:
    """Check that value is a decimal integer string greater than zero."""
    return isinstance(value, str) and bool(_INT_STRING.match(value)) and int(value) > 0


def normalize_address(value: Any) -> str:
    """Return the EIP-55 checksummed form of an EVM address."""
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValueError(f"invalid address: {value!r}")
    return Web3.to_checksum_address(value)


def _int_string(value: Any) -> str:
    if isinstance(value, bool):
        raise ValueError("expected an integer string")
    if isinstance(value, int):
        if value < 0:
            raise ValueError("expected a non-negative integer")
        return str(value)
    if isinstance(value, str) and _INT_STRING.match(value):
        return value
    raise ValueError(f"expected an integer string, got {value!r}")


def _hex_string(value: Any) -> str:
    if isinstance(value, str) and _HEX_STRING.match(value):
        return value
    raise ValueError(f"expected a 0x-prefixed hex string, got {value!r}")


def _wei(value: Any) -> int:
    """Parse a wei amount given as int, decimal string or hex string."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError("expected a wei amount")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if value.startswith("0x"):
            return int(value, 16)
        if _INT_STRING.match(value):
            return int(value)
    raise ValueError(f"expected a wei amount, got {value!r}")


IntString = Annotated[str, BeforeValidator(_int_string)]
HexString = Annotated[str, BeforeValidator(_hex_string)]
Address = Annotated[str, BeforeValidator(normalize_address)]
Wei = Annotated[int, BeforeValidator(_wei)]


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class SwapRoute(_Model):
    """The (chains, tokens, amount, wallet) tuple a quote is priced for."""

    src_chain: int
    dst_chain: int
    src_token: Address
    dst_token: Address
    amount: IntString
    wallet: Address

    @property
    def is_cross_chain(self) -> bool:
        return self.src_chain != self.dst_chain

    @property
    def pair(self) -> tuple[int, int, str, str]:
        return (self.src_chain, self.dst_chain, self.src_token, self.dst_token)


class Quote(_Model):
    """Immutable snapshot of a priceable cross-chain swap.

    ``raw`` keeps the upstream quote object verbatim; the builder sends it
    back unchanged.
    """

    quote_id: str = Field(alias="quoteId", min_length=1)
    src_amount: IntString = Field(alias="srcTokenAmount")
    dst_amount: IntString = Field(alias="dstTokenAmount")
    presets: dict[str, dict[str, Any]] = Field(default_factory=dict)
    recommended_preset: Optional[str] = Field(default=None, alias="recommendedPreset")
    route: SwapRoute
    raw: dict[str, Any] = Field(default_factory=dict)
    received_at: float = Field(default_factory=time.time)

    @model_validator(mode="after")
    def _check_cross_chain(self) -> "Quote":
        if not self.route.is_cross_chain:
            raise ValueError("quote source and destination chains must differ")
        return self

    @classmethod
    def from_response(cls, data: dict[str, Any], route: SwapRoute) -> "Quote":
        """Parse an upstream quote response for the given route."""
        return cls.model_validate({**data, "route": route, "raw": data})

    @property
    def src_chain(self) -> int:
        return self.route.src_chain

    @property
    def dst_chain(self) -> int:
        return self.route.dst_chain


class TypedDataDomain(_Model):
    name: str
    version: str
    chain_id: Optional[int] = Field(default=None, alias="chainId")
    verifying_contract: Address = Field(alias="verifyingContract")


class OrderMessage(_Model):
    """The eight signed fields of a limit-order-protocol order."""

    salt: IntString
    maker_asset: Address = Field(alias="makerAsset")
    taker_asset: Address = Field(alias="takerAsset")
    maker: Address
    receiver: Address
    making_amount: IntString = Field(alias="makingAmount")
    taking_amount: IntString = Field(alias="takingAmount")
    maker_traits: IntString = Field(alias="makerTraits")

    def to_message(self) -> dict[str, str]:
        """Return the camelCase message dict used for signing and submission."""
        return self.model_dump(by_alias=True)


class OrderTypedData(_Model):
    domain: TypedDataDomain
    message: OrderMessage
    primary_type: str = Field(default="Order", alias="primaryType")
    types: dict[str, Any] = Field(default_factory=dict)


class BuiltOrder(_Model):
    """Output of the order builder.

    ``extension`` must reach submit byte-for-byte as returned here.
    """

    typed_data: OrderTypedData = Field(alias="typedData")
    extension: HexString
    order_hash: Optional[HexString] = Field(default=None, alias="orderHash")
    secrets: list[str] = Field(default_factory=list)
    secret_hashes: list[str] = Field(default_factory=list, alias="secretHashList")

    @model_validator(mode="after")
    def _check_extension(self) -> "BuiltOrder":
        if len(self.extension) <= 2:
            raise ValueError("extension is empty")
        return self


class SignedOrder(_Model):
    """A built order together with its signature."""

    built: BuiltOrder
    signature: str

    @model_validator(mode="after")
    def _check_signature(self) -> "SignedOrder":
        if not _SIGNATURE.match(self.signature):
            raise ValueError("signature must be 65 bytes of 0x-prefixed hex")
        return self

    @property
    def typed_data(self) -> OrderTypedData:
        return self.built.typed_data

    @property
    def extension(self) -> str:
        return self.built.extension


class TxPayload(_Model):
    """Unsigned transaction returned by the approve-transaction endpoint."""

    to: Address
    data: HexString = "0x"
    value: Wei = 0
    gas_price: Optional[Wei] = Field(default=None, alias="gasPrice")
    chain_id: int = Field(alias="chainId")


class OrderStatus(str, Enum):
    """Status of a submitted cross-chain order."""

    CREATED = "created"
    PENDING = "pending"
    SRC_DEPLOYED = "src-deployed"
    DST_DEPLOYED = "dst-deployed"
    PARTIALLY_FILLED = "partially-filled"
    FILLED = "filled"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    @classmethod
    def _missing_(cls, value):
        # Relayer reports a completed order as "executed"
        if value == "executed":
            return cls.FILLED
        return None

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


def parse_status(value: Any) -> OrderStatus:
    """Parse a relayer status string, including its aliases."""
    if isinstance(value, OrderStatus):
        return value
    return OrderStatus(value)


TERMINAL_STATUSES = frozenset({OrderStatus.FILLED, OrderStatus.EXPIRED, OrderStatus.CANCELLED})

STATUS_PROGRESS = {
    OrderStatus.CREATED: 25,
    OrderStatus.PENDING: 25,
    OrderStatus.SRC_DEPLOYED: 40,
    OrderStatus.DST_DEPLOYED: 80,
    OrderStatus.PARTIALLY_FILLED: 90,
    OrderStatus.FILLED: 100,
    OrderStatus.EXPIRED: 0,
    OrderStatus.CANCELLED: 0,
}


class SubmitResult(_Model):
    order_hash: HexString = Field(alias="orderHash", min_length=3)
    status: OrderStatus = OrderStatus.CREATED

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        return parse_status(value)


class StatusResult(_Model):
    status: OrderStatus
    order_hash: Optional[str] = Field(default=None, alias="orderHash")
    # Fill entries are passed through untouched
    fills: list[dict[str, Any]] = Field(default_factory=list)
    src_tx_hash: Optional[str] = Field(default=None, alias="srcTxHash")
    dst_tx_hash: Optional[str] = Field(default=None, alias="dstTxHash")

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        return parse_status(value)


@dataclass(frozen=True)
class OrderRecord:
    """A submitted cross-chain order as tracked locally.

    Records are replaced whole; ``advance`` returns a new record and never
    moves an order out of a terminal status.
    """

    quote_id: str
    src_chain: int
    dst_chain: int
    maker: str
    src_token: str
    dst_token: str
    src_amount: str
    dst_amount: str
    order_hash: Optional[str] = None
    status: OrderStatus = OrderStatus.CREATED
    progress: int = STATUS_PROGRESS[OrderStatus.CREATED]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @property
    def key(self) -> str:
        """Store key: order hash once known, record id before that."""
        return self.order_hash or self.id

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def from_submission(cls, quote: Quote, result: SubmitResult) -> "OrderRecord":
        return cls(
            quote_id=quote.quote_id,
            src_chain=quote.src_chain,
            dst_chain=quote.dst_chain,
            maker=quote.route.wallet,
            src_token=quote.route.src_token,
            dst_token=quote.route.dst_token,
            src_amount=quote.src_amount,
            dst_amount=quote.dst_amount,
            order_hash=result.order_hash,
            status=result.status,
            progress=STATUS_PROGRESS[result.status],
        )

    def advance(self, status: OrderStatus) -> "OrderRecord":
        """Apply a polled status.

        Progress never decreases while the order is live; Expired and
        Cancelled reset it to zero.
        """
        if self.is_terminal:
            return self
        if status.is_terminal:
            progress = STATUS_PROGRESS[status]
        else:
            progress = max(self.progress, STATUS_PROGRESS[status])
        if status == self.status and progress == self.progress:
            return self
        return replace(self, status=status, progress=progress, updated_at=time.time())

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dict."""
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "OrderRecord":
        return cls(**{**data, "status": OrderStatus(data["status"])})
