"""Main entry point for ``python -m oscsurface``."""

from oscsurface.cli import cli

if __name__ == "__main__":
    cli()
