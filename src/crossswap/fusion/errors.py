"""Error taxonomy for the cross-chain swap lifecycle.

Components convert transport and wallet failures into these types at their
boundary; the orchestrator never sees a raw ``httpx`` or wallet exception.
"""

from typing import Optional


class SwapError(Exception):
    """Base class for all swap lifecycle errors.

    Attributes:
        recoverable: Whether the orchestrator returns to Idle (True) or Failed (False)
        level: Notification level used when surfacing the error to the user
        invalidates_quote: Whether the held quote can no longer be submitted
    """

    recoverable = True
    invalidates_quote = False
    level = "error"
    default_message = "Cross-chain swap failed"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


# Input guards (raised before any network call)


class ChainGuardError(SwapError):
    """Source and destination chains are the same."""

    level = "warning"
    default_message = "Select different chains for a cross-chain swap"


class InvalidAmount(SwapError):
    """Amount is not a positive integer string."""

    level = "warning"
    default_message = "Enter an amount greater than zero"


class SwapInProgress(SwapError):
    """A submission attempt is already running."""

    level = "warning"
    default_message = "A swap is already in progress"


class InputsChanged(SwapError):
    """Chains, tokens or amount changed while an attempt was running."""

    level = "info"
    invalidates_quote = True
    default_message = "Swap inputs changed. Review the new quote and try again."


# Quote stage


class QuoteFailed(SwapError):
    """Generic quote failure."""

    invalidates_quote = True
    default_message = "Failed to fetch cross-chain quote"


class RouteUnavailable(QuoteFailed):
    """No cross-chain route for the requested pair."""

    level = "warning"
    default_message = (
        "Cross-chain route not available for this token pair. Try different tokens or chains."
    )


class AmountTooSmall(QuoteFailed):
    """Amount is below the upstream minimum."""

    level = "warning"
    default_message = "Amount too small for cross-chain swap. Minimum amount required."


class QuoteExpired(SwapError):
    """Upstream no longer knows the quote; the user must re-quote."""

    level = "warning"
    invalidates_quote = True
    default_message = "Quote expired. Please request a new quote."


# Allowance and approval


class AllowanceCheckFailed(SwapError):
    default_message = "Failed to check token allowance"


class ApprovalRequestFailed(SwapError):
    default_message = "Failed to request approval"


class ApprovalTxFailed(SwapError):
    default_message = "Approval failed"


# Build, sign, submit


class BuildFailed(SwapError):
    invalidates_quote = True
    default_message = "Failed to build cross-chain order"


class InvalidBuildResponse(SwapError):
    """Builder returned a payload that cannot produce a submittable order."""

    recoverable = False
    default_message = "Invalid build response - missing order or extension"


class SignatureRejected(SwapError):
    """User declined the signature request."""

    level = "warning"
    default_message = "Order signature was rejected"


class SigningFailed(SwapError):
    recoverable = False
    default_message = "Failed to sign order"


class ExtensionMismatch(SwapError):
    """Extension handed to submit differs from the one the builder returned."""

    recoverable = False
    default_message = "Order extension does not match the built order"


class SubmissionFailed(SwapError):
    invalidates_quote = True
    default_message = "Failed to create order"


# Status polling


class StatusPollTransientError(SwapError):
    """A single status tick failed; polling continues."""

    default_message = "Failed to fetch order status"
