"""Swap orchestrator.

Owns the user-facing state machine for one cross-chain swap:

    Idle -> Quoting -> Idle
    Idle -> CheckingAllowance -> AwaitingApproval -> ConfirmingApproval -> Idle
    Idle -> CheckingAllowance -> Building -> Signing -> Submitting -> Polling
    Polling -> Succeeded | Idle

Recoverable errors return to Idle and unrecoverable ones to Failed. Every
error is surfaced as exactly one notification.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from crossswap.config import get_settings
from crossswap.fusion.client import FusionPlusClient
from crossswap.fusion.errors import (
    ApprovalTxFailed,
    ChainGuardError,
    InputsChanged,
    InvalidAmount,
    QuoteFailed,
    SwapError,
    SwapInProgress,
)
from crossswap.fusion.models import (
    OrderRecord,
    OrderStatus,
    Quote,
    SwapRoute,
    is_positive_int_string,
)
from crossswap.notifications import Notifier
from crossswap.swap.allowance import AllowanceGate
from crossswap.swap.approval import ApprovalFlow
from crossswap.swap.builder import OrderBuilder
from crossswap.swap.poller import OrderStatusPoller, PollHandle
from crossswap.swap.quotes import QuoteClient
from crossswap.swap.signer import OrderSigner
from crossswap.swap.submitter import OrderSubmitter
from crossswap.utils.debounce import Debouncer
from crossswap.wallet.base import WalletBackend

logger = logging.getLogger(__name__)


class SwapPhase(str, Enum):
    IDLE = "idle"
    QUOTING = "quoting"
    CHECKING_ALLOWANCE = "checking_allowance"
    AWAITING_APPROVAL = "awaiting_approval"
    CONFIRMING_APPROVAL = "confirming_approval"
    BUILDING = "building"
    SIGNING = "signing"
    SUBMITTING = "submitting"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# Phases a quote refresh may temporarily replace with Quoting
QUOTABLE_PHASES = frozenset({SwapPhase.IDLE, SwapPhase.SUCCEEDED, SwapPhase.FAILED})

# Phases during which a submission attempt is running
BUSY_PHASES = frozenset(
    {
        SwapPhase.QUOTING,
        SwapPhase.CHECKING_ALLOWANCE,
        SwapPhase.AWAITING_APPROVAL,
        SwapPhase.CONFIRMING_APPROVAL,
        SwapPhase.BUILDING,
        SwapPhase.SIGNING,
        SwapPhase.SUBMITTING,
    }
)

PhaseListener = Callable[[SwapPhase, SwapPhase], None]
OrderListener = Callable[[OrderRecord], None]


@dataclass(frozen=True)
class SwapSelection:
    """Current form inputs. ``amount`` is in raw source-token units."""

    src_chain: int
    dst_chain: int
    src_token: str
    dst_token: str
    amount: str = ""

    @property
    def is_cross_chain(self) -> bool:
        return self.src_chain != self.dst_chain


class SwapOrchestrator:
    """Drives quote, approval, build, sign, submit and polling for one swap form."""

    def __init__(
        self,
        client: FusionPlusClient,
        wallet: WalletBackend,
        selection: SwapSelection,
        store=None,
        notifier: Optional[Notifier] = None,
        debounce_seconds: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ):
        """Initialize orchestrator.

        Args:
            client: Fusion+ API client shared by all components
            wallet: Wallet capability used for signing and approvals
            selection: Initial chains, tokens and amount
            store: Optional OrderStore for submitted orders
            notifier: Notifier for user-facing messages
            debounce_seconds: Quote debounce (defaults to settings)
            poll_interval: Status poll interval (defaults to settings)
        """
        settings = get_settings()
        self.wallet = wallet
        self.store = store
        self.notifier = notifier or Notifier()

        self.quotes = QuoteClient(client)
        self.allowance = AllowanceGate(client)
        self.approval = ApprovalFlow(client, wallet)
        self.builder = OrderBuilder(client)
        self.signer = OrderSigner(wallet)
        self.submitter = OrderSubmitter(client)
        self.poller = OrderStatusPoller(client, store, self.notifier, poll_interval)

        self._selection = selection
        self._phase = SwapPhase.IDLE
        self._quote: Optional[Quote] = None
        self._seq = 0
        self._order: Optional[OrderRecord] = None
        self._poll_handle: Optional[PollHandle] = None

        delay = debounce_seconds if debounce_seconds is not None else settings.quote_debounce_seconds
        self._debouncer = Debouncer(delay, self.refresh_quote)

        self._phase_listeners: list[PhaseListener] = []
        self._created_listeners: list[OrderListener] = []
        self._updated_listeners: list[OrderListener] = []

    # State

    @property
    def phase(self) -> SwapPhase:
        return self._phase

    @property
    def selection(self) -> SwapSelection:
        return self._selection

    @property
    def quote(self) -> Optional[Quote]:
        return self._quote

    @property
    def order(self) -> Optional[OrderRecord]:
        return self._order

    @property
    def progress(self) -> int:
        return self._order.progress if self._order else 0

    @property
    def is_busy(self) -> bool:
        return self._phase in BUSY_PHASES

    # Listeners

    def on_phase_change(self, listener: PhaseListener) -> None:
        self._phase_listeners.append(listener)

    def on_order_created(self, listener: OrderListener) -> None:
        self._created_listeners.append(listener)

    def on_order_updated(self, listener: OrderListener) -> None:
        self._updated_listeners.append(listener)

    def _set_phase(self, phase: SwapPhase) -> None:
        previous = self._phase
        if previous == phase:
            return
        self._phase = phase
        logger.debug(f"Swap phase: {previous.value} -> {phase.value}")
        for listener in list(self._phase_listeners):
            try:
                listener(previous, phase)
            except Exception as e:
                logger.warning(f"Phase listener failed: {e}")

    def _emit(self, listeners: list[OrderListener], record: OrderRecord) -> None:
        for listener in list(listeners):
            try:
                listener(record)
            except Exception as e:
                logger.warning(f"Order listener failed: {e}")

    def _notify_error(self, error: SwapError) -> None:
        self.notifier.show(error.level, error.message)
        if error.details:
            logger.warning(f"{type(error).__name__}: {error.message} ({error.details})")
        else:
            logger.warning(f"{type(error).__name__}: {error.message}")

    # Form inputs

    def set_amount(self, amount: str) -> None:
        """Update the amount; re-quotes after the debounce delay."""
        self._change_selection(amount=amount)

    def set_tokens(self, src_token: str, dst_token: str) -> None:
        self._change_selection(src_token=src_token, dst_token=dst_token)

    def set_chains(self, src_chain: int, dst_chain: int) -> None:
        self._change_selection(src_chain=src_chain, dst_chain=dst_chain)

    def switch_direction(self) -> None:
        """Swap source and destination tokens and chains.

        The held quote is invalidated; an order already being polled is not
        affected.
        """
        s = self._selection
        self._change_selection(
            src_chain=s.dst_chain,
            dst_chain=s.src_chain,
            src_token=s.dst_token,
            dst_token=s.src_token,
        )

    def _change_selection(self, **changes) -> None:
        self._selection = replace(self._selection, **changes)
        self._invalidate_quote()

        if self._selection.is_cross_chain and is_positive_int_string(self._selection.amount):
            self._debouncer.trigger()
        else:
            self._debouncer.cancel()

    def _invalidate_quote(self) -> None:
        self._seq += 1
        self._quote = None

    # Quoting

    async def refresh_quote(self) -> Optional[Quote]:
        """Fetch a quote for the current selection.

        A response that arrives after the selection changed is discarded.
        """
        selection = self._selection
        if not selection.is_cross_chain:
            self._notify_error(ChainGuardError())
            return None
        if not is_positive_int_string(selection.amount):
            return None

        seq = self._seq
        entered = self._phase in QUOTABLE_PHASES
        if entered:
            self._set_phase(SwapPhase.QUOTING)

        try:
            route = await self._route_for(selection)
            quote = await self.quotes.quote_route(route)
        except SwapError as e:
            if seq == self._seq:
                self._quote = None
                self._notify_error(e)
            return None
        finally:
            if entered and self._phase == SwapPhase.QUOTING:
                self._set_phase(SwapPhase.IDLE)

        if seq != self._seq:
            logger.info(f"Discarding stale quote {quote.quote_id}")
            return None

        self._quote = quote
        return quote

    async def _route_for(self, selection: SwapSelection) -> SwapRoute:
        try:
            wallet_address = await self.wallet.get_address()
        except Exception as e:
            logger.error(f"Wallet address unavailable: {e}")
            raise QuoteFailed("Wallet address unavailable", details=str(e)) from e
        try:
            return SwapRoute(
                src_chain=selection.src_chain,
                dst_chain=selection.dst_chain,
                src_token=selection.src_token,
                dst_token=selection.dst_token,
                amount=selection.amount,
                wallet=wallet_address,
            )
        except ValidationError as e:
            raise QuoteFailed("Invalid token or wallet address", details=str(e)) from e

    # Submission

    async def submit(self) -> Optional[OrderRecord]:
        """Run one submission attempt for the held quote.

        Returns the created order record, or None when the attempt ended in
        approval, rejection or an error.
        """
        if self.is_busy:
            self._notify_error(SwapInProgress())
            return None
        if not self._selection.is_cross_chain:
            self._notify_error(ChainGuardError())
            return None
        if not is_positive_int_string(self._selection.amount):
            self._notify_error(InvalidAmount())
            return None
        if self._quote is None:
            self.notifier.warning("Get a valid quote before submitting")
            return None

        self._debouncer.cancel()
        self._stop_tracking()

        seq = self._seq
        try:
            return await self._attempt(self._quote, seq)
        except SwapError as e:
            self._fail(e, seq)
            return None

    def _fail(self, error: SwapError, seq: int) -> None:
        # A newer quote fetched for changed inputs stays valid
        if seq == self._seq and (error.invalidates_quote or not error.recoverable):
            self._quote = None
        self._notify_error(error)
        self._set_phase(SwapPhase.IDLE if error.recoverable else SwapPhase.FAILED)

    def _ensure_current(self, seq: int) -> None:
        if seq != self._seq:
            raise InputsChanged()

    async def _attempt(self, quote: Quote, seq: int) -> Optional[OrderRecord]:
        route = quote.route

        self._set_phase(SwapPhase.CHECKING_ALLOWANCE)
        sufficient = await self.allowance.has_sufficient_allowance(
            route.src_token, route.wallet, route.src_chain, route.amount
        )
        if not sufficient:
            await self._approve(route)
            return None

        self._set_phase(SwapPhase.BUILDING)
        # Quotes expire quickly; build against a fresh one
        quote = await self.quotes.quote_route(route)
        self._ensure_current(seq)
        self._quote = quote

        built = await self.builder.build_for_quote(quote)
        self._ensure_current(seq)

        self._set_phase(SwapPhase.SIGNING)
        signed = await self.signer.sign(built, route.src_chain)

        self._set_phase(SwapPhase.SUBMITTING)
        result = await self.submitter.submit_order(
            signed, built.extension, quote.quote_id, route.src_chain, route.dst_chain
        )

        record = OrderRecord.from_submission(quote, result)
        self._quote = None
        self._order = record
        if self.store is not None:
            # The order exists upstream; keep tracking it even if it cannot be stored
            try:
                await self.store.save(record)
            except Exception as e:
                logger.error(f"Failed to persist order {record.key}: {e}")
        self._emit(self._created_listeners, record)

        self.notifier.success("Cross-chain order created successfully! Monitoring execution...")
        logger.info(f"Order {record.order_hash} created from quote {quote.quote_id}")

        if record.is_terminal:
            self._finish_order(record)
        else:
            self._set_phase(SwapPhase.POLLING)
            self._poll_handle = self.poller.start(
                record,
                on_update=self._on_order_updated,
                on_terminal=self._on_order_terminal,
            )
        return record

    async def _approve(self, route: SwapRoute) -> None:
        self._set_phase(SwapPhase.AWAITING_APPROVAL)
        payload = await self.approval.request_approval_transaction(route.src_token, route.src_chain)
        self.notifier.loading("Sending approval…")
        tx_hash = await self.approval.send(payload)

        self._set_phase(SwapPhase.CONFIRMING_APPROVAL)
        self.notifier.loading("Confirming approval…")
        try:
            await self.approval.confirm(tx_hash)
        except ApprovalTxFailed as e:
            self._notify_error(e)
            self._set_phase(SwapPhase.FAILED)
            return

        self.notifier.success("Approval successful! You can now bridge tokens.")
        self._set_phase(SwapPhase.IDLE)
        # Price may have moved while the approval was mined
        self._invalidate_quote()
        await self.refresh_quote()

    # Order tracking

    def _is_tracked(self, record: OrderRecord) -> bool:
        # The live handle holds the record it is dispatching
        handle = self._poll_handle
        return handle is not None and handle.record is record

    def _on_order_updated(self, record: OrderRecord) -> None:
        if not self._is_tracked(record):
            logger.debug(f"Ignoring update for untracked order {record.key}")
            return
        self._order = record
        self._emit(self._updated_listeners, record)

    def _on_order_terminal(self, record: OrderRecord) -> None:
        if not self._is_tracked(record):
            logger.debug(f"Ignoring terminal status for untracked order {record.key}")
            return
        self._finish_order(record)

    def _finish_order(self, record: OrderRecord) -> None:
        self._poll_handle = None
        if record.status == OrderStatus.FILLED:
            self._order = record
            self._set_phase(SwapPhase.SUCCEEDED)
        else:
            # Expired and cancelled orders leave active tracking
            self._order = None
            self._set_phase(SwapPhase.IDLE)

    def _stop_tracking(self) -> None:
        self.poller.stop()
        self._poll_handle = None
        self._order = None

    async def dismiss_order(self) -> None:
        """Stop tracking the current order and remove it from the store."""
        record = self._order
        self._stop_tracking()
        if record is not None and self.store is not None:
            await self.store.delete(record.key)
        if self._phase in (SwapPhase.POLLING, SwapPhase.SUCCEEDED):
            self._set_phase(SwapPhase.IDLE)

    async def wait_for_order(self) -> Optional[OrderRecord]:
        """Wait until the current polling session ends; returns its last record."""
        handle = self._poll_handle
        if handle is None:
            return self._order
        await handle.wait()
        return handle.record

    def close(self) -> None:
        """Cancel pending quote requests and stop polling."""
        self._debouncer.cancel()
        self.poller.stop()
        self._poll_handle = None
