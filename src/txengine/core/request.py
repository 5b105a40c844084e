"""
Operation Request model.

Immutable description of one state-changing contract call.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from txengine.abi.interface import ContractInterface
from txengine.config import EngineConfig, get_config

DEFAULT_CONFIRMATIONS = 1
DEFAULT_TIMEOUT_MS = 300_000


@dataclass(frozen=True)
class ContractEndpoint:
    """
    A deployed contract the engine can call.

    Attributes:
        address: Contract address
        interface: Method and event catalog of the contract
        name: Optional human readable name for logs
    """
    address: str
    interface: ContractInterface
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.interface.name or self.address


@dataclass(frozen=True)
class OperationOptions:
    """
    Execution options for a single operation.

    Attributes:
        confirmations: Confirmations required before the operation counts as final
        timeout_ms: Maximum time to wait for those confirmations
        stop_on_failure: Halt the enclosing batch if this operation does not confirm
        value: Native amount sent along with the call
        gas_limit: Explicit gas limit, or None to let the node estimate
    """
    confirmations: int = DEFAULT_CONFIRMATIONS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    stop_on_failure: bool = False
    value: int = 0
    gas_limit: Optional[int] = None

    def __post_init__(self):
        """Validate option ranges."""
        if self.confirmations < 1:
            raise ValueError(f"confirmations must be >= 1, got {self.confirmations}")
        if self.timeout_ms < 1:
            raise ValueError(f"timeout_ms must be >= 1, got {self.timeout_ms}")
        if self.value < 0:
            raise ValueError(f"value must be >= 0, got {self.value}")

    @classmethod
    def from_config(cls, config: Optional[EngineConfig] = None, **overrides) -> "OperationOptions":
        """Create options from configured defaults, with explicit overrides."""
        config = config or get_config()
        values = {
            "confirmations": config.default_confirmations,
            "timeout_ms": config.default_timeout_ms,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


@dataclass(frozen=True)
class OperationRequest:
    """
    Immutable description of work to perform.

    Created by the caller and never mutated by the engine. Executing the
    same request twice produces two independent records.
    """
    endpoint: ContractEndpoint
    method: str
    args: Tuple[Any, ...] = ()
    options: OperationOptions = field(default_factory=OperationOptions)

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))

    def with_options(self, **changes) -> "OperationRequest":
        """Copy of this request with some options replaced."""
        return replace(self, options=replace(self.options, **changes))

    @property
    def description(self) -> str:
        return f"{self.endpoint.label}.{self.method}"

    def to_dict(self) -> dict:
        return {
            "contract": self.endpoint.label,
            "address": self.endpoint.address,
            "method": self.method,
            "args": format_args(self.args),
            "confirmations": self.options.confirmations,
            "timeout_ms": self.options.timeout_ms,
        }


def format_args(args: Sequence[Any]) -> List[Any]:
    """Render argument values for logs and serialization."""
    return [_format_arg(arg) for arg in args]


def _format_arg(arg: Any) -> Any:
    if isinstance(arg, bytes):
        return "0x" + arg.hex()
    if isinstance(arg, (list, tuple)):
        return format_args(arg)
    if isinstance(arg, dict):
        return {key: _format_arg(value) for key, value in arg.items()}
    if isinstance(arg, int) and not isinstance(arg, bool) and abs(arg) > 2**53:
        # Keep large integers exact for JSON consumers
        return str(arg)
    return arg


def load_requests(
    entries: Sequence[Dict[str, Any]],
    interfaces: Dict[str, ContractInterface],
    config: Optional[EngineConfig] = None,
) -> List[OperationRequest]:
    """
    Build requests from plain mappings.

    Each entry holds ``contract`` (key into ``interfaces``), ``address``,
    ``method``, optional ``args`` and optional ``options``.

    Raises:
        ValueError: If an entry references an unknown contract or is incomplete
    """
    requests = []
    for position, entry in enumerate(entries):
        try:
            contract = entry["contract"]
            address = entry["address"]
            method = entry["method"]
        except KeyError as e:
            raise ValueError(f"Operation {position}: missing field {e}")

        interface = interfaces.get(contract)
        if interface is None:
            raise ValueError(f"Operation {position}: unknown contract {contract}")

        options = OperationOptions.from_config(config, **entry.get("options", {}))
        requests.append(
            OperationRequest(
                endpoint=ContractEndpoint(address=address, interface=interface, name=contract),
                method=method,
                args=tuple(entry.get("args", [])),
                options=options,
            )
        )
    return requests
