"""Allowance gate.

Decides whether the settlement contract may already move the source token.
Allowances are compared as exact integers.
"""

import logging

from crossswap.fusion.client import FusionApiError, FusionPlusClient
from crossswap.fusion.errors import AllowanceCheckFailed, InvalidAmount
from crossswap.fusion.models import NATIVE_TOKEN, is_positive_int_string

logger = logging.getLogger(__name__)


class AllowanceGate:
    """Checks token allowance through the approve/allowance endpoint."""

    def __init__(self, client: FusionPlusClient):
        self.client = client

    async def has_sufficient_allowance(
        self,
        token_address: str,
        owner_address: str,
        spender_chain: int,
        amount_raw: str,
    ) -> bool:
        """Return True iff allowance >= amount_raw.

        An insufficient allowance is an expected branch and returns False.

        Raises:
            InvalidAmount: amount_raw is not a positive integer string
            AllowanceCheckFailed: network or parse failure
        """
        if not is_positive_int_string(amount_raw):
            raise InvalidAmount()

        # Native coins are spent directly, no ERC-20 approval exists
        if token_address.lower() == NATIVE_TOKEN.lower():
            return True

        try:
            data = await self.client.allowance(token_address, owner_address, spender_chain)
        except FusionApiError as e:
            logger.error(f"Allowance check error: {e.message}")
            raise AllowanceCheckFailed(details=e.message) from e

        raw = data.get("allowance")
        if isinstance(raw, int) and not isinstance(raw, bool):
            allowance = raw
        elif isinstance(raw, str) and raw.isascii() and raw.isdigit():
            allowance = int(raw)
        else:
            raise AllowanceCheckFailed("Malformed allowance response", details=repr(raw))

        required = int(amount_raw)
        sufficient = allowance >= required
        logger.info(
            f"Allowance for {token_address} on chain {spender_chain}: {allowance} "
            f"(required {required}, sufficient={sufficient})"
        )
        return sufficient
