"""Hook context and exceptions for the hook system.

HookContext travels with every firing of one send; AbortHookException lets
a before-send hook cancel the send; HookResult is what a trigger returns.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional


class AbortHookException(Exception):
    """Raised by before-hooks to cancel a send.

    When raised in an ON_MAIL_BEFORE_SEND hook, the transport is never
    invoked and the send is reported to ON_MAIL_FAILED as aborted.

    Args:
        message: Human-readable reason, reported as the MailError message.

    Example:
        async def block_internal(event, data, context):
            if "internal@example.com" in data["to"]:
                raise AbortHookException("Internal address is blocked")
            return data
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


@dataclass
class HookContext:
    """Context passed to all hook callbacks.

    One context is created per logical send and passed unchanged to the
    before-send, after-send and failure hooks, so ``send_id`` is what ties
    the three firings together.

    Attributes:
        app: The hosting application, if any.
        send_id: Correlation ID for one logical send.
        source: What initiated the send (e.g. "api", "cli", "test_email").
    """

    app: Any = None
    send_id: str = ""
    source: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.send_id:
            self.send_id = f"ml_{uuid.uuid4().hex[:12]}"


@dataclass
class HookResult:
    """Result of a hook trigger operation.

    Attributes:
        success: Whether all hooks executed successfully.
        aborted: Whether the operation was aborted by a hook.
        abort_message: Message from AbortHookException if aborted.
        errors: List of error messages from hooks that failed.
        data: Modified data from the hook chain.
    """

    success: bool = True
    aborted: bool = False
    abort_message: Optional[str] = None
    errors: list[str] = field(default_factory=list)
    data: Optional[dict[str, Any]] = None
