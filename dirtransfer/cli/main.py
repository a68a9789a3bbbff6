"""
dirtransfer CLI entry point.

This creates the 'dirtransfer' command via entry point in pyproject.toml.
"""

import sys

try:
    import click  # noqa: F401

    HAS_CLICK = True
except ImportError:
    HAS_CLICK = False


def main():
    """Main entry point for the dirtransfer CLI."""
    if not HAS_CLICK:
        print("The dirtransfer CLI requires click: pip install dirtransfer[cli]", file=sys.stderr)
        sys.exit(1)

    from dirtransfer.cli.app import cli

    cli()


if __name__ == "__main__":
    main()
