#!/usr/bin/env python
"""Django's command-line utility for administrative tasks."""
import os
import sys


def main():
    # Local runs default to settings_dev (SQLite, DEBUG=True)
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "freightdesk.settings_dev")
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Make sure it's installed:\n"
            "  pip install -e ."
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
