# File: crudgen/__main__.py
"""
CrudGen - Module entry point.

Allows running the generator directly via::

    python -m crudgen Invoice --project ./shop

This module simply delegates to the CLI entry point defined in ``crudgen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from crudgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
