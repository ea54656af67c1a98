"""
Entry point for ``python -m meetingdesk``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
