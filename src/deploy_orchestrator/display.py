"""Operator-facing reporting of deployed contracts."""

import logging
from typing import Sequence

from rich.console import Console
from rich.markup import escape

from .chain import ContractHandle, format_value
from .constants import PROPERTY_PADDING

logger = logging.getLogger(__name__)


def show_contract(
    console: Console,
    name: str,
    handle: ContractHandle,
    display_properties: Sequence[str],
    already_deployed: bool = False,
) -> None:
    """
    Print where a contract lives and the values of its display accessors.

    Accessors missing from the contract's ABI are logged as warnings and skipped.
    """
    if already_deployed:
        prefix = f"Contract {name} has already been deployed"
    else:
        prefix = f"Deployed contract {name}"

    if not display_properties:
        console.print(f"{prefix} at address {handle.address}")
        return

    console.print(f"{prefix} at address {handle.address} with properties:")
    width = max(len(p) for p in display_properties) + PROPERTY_PADDING

    for prop in display_properties:
        if not handle.has_accessor(prop):
            logger.warning("function %r not found for contract %r", prop, name)
            continue
        value = format_value(handle.call(prop))
        console.print(escape(f"{prop}:".ljust(width) + value))
