"""
CLI commands for plugbridge.

This package contains all Click command definitions.
"""

from plugbridge.cli.extensions import (
    install_cmd,
    list_cmd,
    remove_cmd,
    status_cmd,
)

__all__ = [
    'install_cmd',
    'list_cmd',
    'remove_cmd',
    'status_cmd',
]
