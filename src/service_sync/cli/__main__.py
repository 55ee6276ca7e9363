"""CLI entry point.

Usage:
    python -m service_sync.cli check
    service-sync publish messages created '{"text": "hi"}'
    service-sync listen messages created
"""

from service_sync.cli.app import app


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
