"""
Interface descriptions.

Method and event catalogs used to encode calls and decode receipt logs.
"""

from txengine.abi.interface import (
    ContractInterface,
    DecodedLog,
    EventFragment,
    FunctionFragment,
    InterfaceError,
    decode_revert_reason,
)

__all__ = [
    "ContractInterface",
    "DecodedLog",
    "EventFragment",
    "FunctionFragment",
    "InterfaceError",
    "decode_revert_reason",
]
