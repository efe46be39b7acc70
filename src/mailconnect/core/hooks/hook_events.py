"""Hook event names.

Renaming or removing an event breaks every extension registered for it;
adding one does not.
"""


class HookEvent:
    """Events fired by the app and the mailer.

    - ON_MAIL_BEFORE_SEND is a filter: hooks receive the outgoing message
      dict and may return a replacement. It fires before the transport runs.
    - ON_MAIL_AFTER_SEND fires only when the transport accepted the message.
    - ON_MAIL_FAILED fires when the send failed or was aborted; data carries
      the MailError under "error".
    - ON_LOG_CLEANUP fires after a retention sweep with the deleted count.
    """

    ON_BOOTSTRAP = "on_bootstrap"
    ON_SERVE = "on_serve"
    ON_TERMINATE = "on_terminate"

    ON_MAIL_BEFORE_SEND = "on_mail_before_send"
    ON_MAIL_AFTER_SEND = "on_mail_after_send"
    ON_MAIL_FAILED = "on_mail_failed"

    ON_LOG_CLEANUP = "on_log_cleanup"
