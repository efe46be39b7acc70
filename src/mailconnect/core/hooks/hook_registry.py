"""Hook registry - where the mailer announces each send.

Extensions and the email logger register callbacks per event. A trigger
runs them highest priority first (registration order breaks ties), lets
before-send callbacks replace the message by returning a dict, and keeps
going past a callback that raises: the error is logged and collected on the
HookResult, so an observer can never change the outcome of a send.
"""

import inspect
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from mailconnect.core.logging import get_logger
from mailconnect.domain.entities.hook_context import (
    AbortHookException,
    HookContext,
    HookResult,
)

logger = get_logger(__name__)

HookCallback = Callable[[str, Optional[dict[str, Any]], Optional[HookContext]], Any]


@dataclass
class RegisteredHook:
    """A callback bound to one event.

    Built-in hooks (the email logger's) survive ``unregister``.
    """

    id: str
    event: str
    callback: HookCallback
    priority: int = 0
    is_builtin: bool = False
    order: int = 0

    @property
    def sort_key(self) -> tuple[int, int]:
        return (-self.priority, self.order)


class HookRegistry:
    """Registry of mail lifecycle callbacks.

    Example:
        registry = HookRegistry()

        async def stamp(event, data, context):
            return {**data, "headers": ["X-Stamp: 1"]}

        registry.register(HookEvent.ON_MAIL_BEFORE_SEND, stamp, priority=5)
    """

    def __init__(self) -> None:
        self._hooks: dict[str, RegisteredHook] = {}
        self._order = 0

    def register(
        self,
        event: str,
        callback: HookCallback,
        priority: int = 0,
        is_builtin: bool = False,
    ) -> str:
        """Register ``callback`` for ``event``.

        Args:
            event: A HookEvent name.
            callback: Called as ``callback(event, data, context)``; may be async.
            priority: Higher runs first.
            is_builtin: Protect the hook from ``unregister``.

        Returns:
            The hook id.
        """
        self._order += 1
        hook = RegisteredHook(
            id=f"hook_{uuid.uuid4().hex[:12]}",
            event=event,
            callback=callback,
            priority=priority,
            is_builtin=is_builtin,
            order=self._order,
        )
        self._hooks[hook.id] = hook

        logger.debug(
            "Hook registered",
            hook_id=hook.id,
            hook_event=event,
            priority=priority,
            is_builtin=is_builtin,
        )
        return hook.id

    def unregister(self, hook_id: str) -> bool:
        """Remove a hook. Built-in and unknown ids are refused."""
        hook = self._hooks.get(hook_id)
        if hook is None or hook.is_builtin:
            logger.warning(
                "Hook not unregistered",
                hook_id=hook_id,
                reason="built-in" if hook else "not found",
            )
            return False

        del self._hooks[hook_id]
        logger.debug("Hook unregistered", hook_id=hook_id, hook_event=hook.event)
        return True

    def get(self, hook_id: str) -> Optional[RegisteredHook]:
        return self._hooks.get(hook_id)

    def hooks_for(self, event: str) -> list[RegisteredHook]:
        """Hooks for ``event`` in execution order."""
        return sorted(
            (hook for hook in self._hooks.values() if hook.event == event),
            key=lambda hook: hook.sort_key,
        )

    async def trigger(
        self,
        event: str,
        data: Optional[dict[str, Any]] = None,
        context: Optional[HookContext] = None,
    ) -> HookResult:
        """Run every hook for ``event``.

        A dict returned by a hook becomes the data for the hooks after it
        and ``HookResult.data``. An AbortHookException stops the chain and
        marks the result aborted; any other exception is logged and
        collected in ``HookResult.errors``.
        """
        result = HookResult(success=True, data=data)
        hooks = self.hooks_for(event)
        if not hooks:
            return result

        logger.debug("Triggering hooks", hook_event=event, hook_count=len(hooks))

        for hook in hooks:
            try:
                returned = hook.callback(event, result.data, context)
                if inspect.isawaitable(returned):
                    returned = await returned
            except AbortHookException as e:
                logger.info(
                    "Hook aborted send",
                    hook_id=hook.id,
                    hook_event=event,
                    reason=e.message,
                )
                result.success = False
                result.aborted = True
                result.abort_message = e.message
                return result
            except Exception as e:
                logger.error(
                    "Hook execution failed",
                    hook_id=hook.id,
                    hook_event=event,
                    error=str(e),
                )
                result.errors.append(f"Hook {hook.id} failed: {e}")
                continue

            if isinstance(returned, dict):
                result.data = returned

        return result
