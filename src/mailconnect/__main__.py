"""Entry point for 'python -m mailconnect' command.

This module allows the MailConnect CLI to be invoked using
'python -m mailconnect'.
"""

from mailconnect.cli import main

if __name__ == "__main__":
    main()
