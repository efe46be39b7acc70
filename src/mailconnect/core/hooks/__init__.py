"""Hook system core module.

The mailer announces every send through these hooks; the email logger and
any host extension observe sends by registering callbacks.

Example usage:
    from mailconnect.core.hooks import HookEvent, HookRegistry

    registry = HookRegistry()

    async def audit(event, data, context):
        print(context.send_id, data["subject"])

    registry.register(HookEvent.ON_MAIL_BEFORE_SEND, audit)
"""

from mailconnect.core.hooks.hook_events import HookEvent
from mailconnect.core.hooks.hook_registry import HookRegistry, RegisteredHook

__all__ = [
    "HookEvent",
    "HookRegistry",
    "RegisteredHook",
]
