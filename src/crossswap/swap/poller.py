"""Order status polling.

A ``PollHandle`` owns one asyncio task that fetches the status of a single
order on a fixed interval until the order is terminal or the handle is
stopped. ``OrderStatusPoller`` keeps at most one handle live: starting a new
session stops the previous one first.
"""

import asyncio
import logging
from typing import Callable, Optional

from pydantic import ValidationError

from crossswap.config import get_settings
from crossswap.fusion.client import FusionApiError, FusionPlusClient
from crossswap.fusion.errors import StatusPollTransientError
from crossswap.fusion.models import OrderRecord, OrderStatus, StatusResult
from crossswap.notifications import NotificationLevel, Notifier

logger = logging.getLogger(__name__)

RecordCallback = Callable[[OrderRecord], None]

TERMINAL_NOTIFICATIONS = {
    OrderStatus.FILLED: (NotificationLevel.SUCCESS, "Cross-chain swap completed successfully!"),
    OrderStatus.EXPIRED: (NotificationLevel.WARNING, "Cross-chain order expired. You can try again."),
    OrderStatus.CANCELLED: (NotificationLevel.INFO, "Cross-chain order was cancelled."),
}


class PollHandle:
    """Cancellation handle for one polling session."""

    def __init__(
        self,
        record: OrderRecord,
        on_update: Optional[RecordCallback] = None,
        on_terminal: Optional[RecordCallback] = None,
    ):
        self._record = record
        self.on_update = on_update
        self.on_terminal = on_terminal
        self.ticks = 0
        self._stopped = False
        self._sleeping = False
        self._task: Optional[asyncio.Task] = None

    @property
    def record(self) -> OrderRecord:
        return self._record

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        """Stop polling. Idempotent.

        A fetch already in flight is allowed to complete; its result is
        discarded.
        """
        if self._stopped:
            return
        self._stopped = True
        task = self._task
        if task is not None and self._sleeping and task is not asyncio.current_task():
            task.cancel()
        logger.debug(f"Stopped polling order {self._record.key}")

    async def wait(self) -> None:
        """Wait for the polling task to exit."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)


class OrderStatusPoller:
    """Polls order status on a fixed interval."""

    def __init__(
        self,
        client: FusionPlusClient,
        store=None,
        notifier: Optional[Notifier] = None,
        interval: Optional[float] = None,
    ):
        """Initialize poller.

        Args:
            client: Fusion+ API client
            store: Optional OrderStore; each transition is saved to it
            notifier: Optional notifier for terminal outcomes
            interval: Seconds between polls (defaults to settings.status_poll_interval)
        """
        self.client = client
        self.store = store
        self.notifier = notifier
        self.interval = interval if interval is not None else get_settings().status_poll_interval
        self._active: Optional[PollHandle] = None

    @property
    def active(self) -> Optional[PollHandle]:
        return self._active

    async def get_order_status(self, order_hash: str, src_chain: int, dst_chain: int) -> StatusResult:
        """Fetch one status snapshot.

        Raises:
            StatusPollTransientError: network failure or malformed response
        """
        try:
            data = await self.client.status(order_hash, src_chain, dst_chain)
        except FusionApiError as e:
            raise StatusPollTransientError(details=e.message) from e

        try:
            return StatusResult.model_validate(data)
        except ValidationError as e:
            raise StatusPollTransientError("Malformed status response", details=str(e)) from e

    def start(
        self,
        record: OrderRecord,
        on_update: Optional[RecordCallback] = None,
        on_terminal: Optional[RecordCallback] = None,
    ) -> PollHandle:
        """Start polling an order; any previous session is stopped first."""
        if not record.order_hash:
            raise ValueError("cannot poll an order without an order hash")

        self.stop()

        handle = PollHandle(record, on_update=on_update, on_terminal=on_terminal)
        handle._task = asyncio.get_running_loop().create_task(self._run(handle))
        self._active = handle
        logger.info(f"Polling order {record.order_hash} every {self.interval}s")
        return handle

    def stop(self) -> None:
        """Stop the active session, if any."""
        if self._active is not None:
            self._active.stop()
            self._active = None

    async def _run(self, handle: PollHandle) -> None:
        while not handle.stopped:
            handle._sleeping = True
            try:
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                if handle.stopped:
                    break
                raise
            finally:
                handle._sleeping = False

            if handle.stopped:
                break

            handle.ticks += 1
            record = handle.record
            try:
                result = await self.get_order_status(
                    record.order_hash, record.src_chain, record.dst_chain
                )
            except StatusPollTransientError as e:
                logger.warning(f"Status poll for {record.order_hash} failed: {e.details or e.message}")
                continue

            if handle.stopped:
                logger.debug(f"Discarding status for stopped order {record.order_hash}")
                break

            await self.apply_status(handle, result.status)

    async def apply_status(self, handle: PollHandle, status: OrderStatus) -> OrderRecord:
        """Apply a status to the handle's record.

        Terminal records are never modified again; the terminal notification
        and ``on_terminal`` callback fire once per record.
        """
        current = handle.record
        updated = current.advance(status)
        if updated is current:
            return current

        handle._record = updated
        logger.info(
            f"Order {updated.order_hash}: {current.status.value} -> {updated.status.value} "
            f"({updated.progress}%)"
        )

        if self.store is not None:
            try:
                await self.store.save(updated)
            except Exception as e:
                logger.error(f"Failed to persist order {updated.key}: {e}")

        if handle.stopped:
            # Stopped by a newer session while the save was pending
            logger.debug(f"Not dispatching status for stopped order {updated.key}")
            return updated

        if handle.on_update is not None:
            handle.on_update(updated)

        if updated.is_terminal:
            handle.stop()
            if self._active is handle:
                self._active = None
            if self.notifier is not None:
                level, message = TERMINAL_NOTIFICATIONS[updated.status]
                self.notifier.show(level, message)
            if handle.on_terminal is not None:
                handle.on_terminal(updated)

        return updated
