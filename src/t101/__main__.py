"""Entry point for running t101 as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the t101 CLI application."""
    app()


if __name__ == "__main__":
    main()
