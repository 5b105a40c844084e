"""
Contract interface descriptions.

Wraps a JSON ABI so the engine can encode method calls and decode the raw
log entries found in receipts. The ABI catalog itself is supplied by the
caller; this module only interprets it.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import (
    collapse_if_tuple,
    decode_hex,
    encode_hex,
    event_abi_to_log_topic,
    function_abi_to_4byte_selector,
)

# Standard revert payload selectors
ERROR_STRING_SELECTOR = "0x08c379a0"   # Error(string)
PANIC_SELECTOR = "0x4e487b71"          # Panic(uint256)

PANIC_REASONS = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x22: "invalid storage byte array encoding",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to uninitialized function",
}


class InterfaceError(Exception):
    """Raised when an ABI cannot be interpreted or a call cannot be encoded."""

    def __init__(self, message: str, code: str = "INTERFACE_ERROR"):
        super().__init__(message)
        self.code = code


def _is_dynamic(typ: str) -> bool:
    """Whether an indexed value of this type is stored as a hash in its topic."""
    return (
        typ in ("string", "bytes")
        or typ.endswith("]")
        or typ.startswith("(")
    )


def format_value(value: Any) -> Any:
    """Convert decoded ABI values to plain, serializable Python values."""
    if isinstance(value, bytes):
        return encode_hex(value)
    if isinstance(value, (list, tuple)):
        return [format_value(v) for v in value]
    return value


def _to_bytes(data: Union[str, bytes, None]) -> bytes:
    if data is None:
        return b""
    if isinstance(data, bytes):
        return data
    return decode_hex(data) if data not in ("", "0x") else b""


@dataclass(frozen=True)
class FunctionFragment:
    """A callable method of a contract interface."""

    name: str
    input_types: List[str]
    input_names: List[str]
    selector: str                       # first four bytes of the signature hash
    state_mutability: str = "nonpayable"

    @classmethod
    def from_abi(cls, entry: Dict[str, Any]) -> "FunctionFragment":
        inputs = entry.get("inputs", [])
        return cls(
            name=entry["name"],
            input_types=[collapse_if_tuple(p) for p in inputs],
            input_names=[p.get("name", "") for p in inputs],
            selector=encode_hex(function_abi_to_4byte_selector(entry)),
            state_mutability=entry.get("stateMutability", "nonpayable"),
        )

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    def encode(self, args: Sequence[Any]) -> str:
        """
        Encode call data for this method.

        Args:
            args: Positional argument values

        Returns:
            Hex encoded call data (selector followed by arguments)

        Raises:
            InterfaceError: If the arguments cannot be encoded
        """
        try:
            encoded = abi_encode(self.input_types, list(args))
        except (EncodingError, TypeError, ValueError, OverflowError) as e:
            raise InterfaceError(
                f"Cannot encode arguments for {self.signature}: {e}", code="ENCODING_ERROR"
            )
        return self.selector + encoded.hex()


@dataclass(frozen=True)
class EventInput:
    name: str
    type: str
    indexed: bool


@dataclass(frozen=True)
class EventFragment:
    """An event a contract may emit."""

    name: str
    inputs: List[EventInput]
    topic: str                          # signature hash identifying the event in logs
    anonymous: bool = False

    @classmethod
    def from_abi(cls, entry: Dict[str, Any]) -> "EventFragment":
        return cls(
            name=entry["name"],
            inputs=[
                EventInput(
                    name=p.get("name", ""),
                    type=collapse_if_tuple(p),
                    indexed=bool(p.get("indexed", False)),
                )
                for p in entry.get("inputs", [])
            ],
            topic=encode_hex(event_abi_to_log_topic(entry)),
            anonymous=bool(entry.get("anonymous", False)),
        )

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(i.type for i in self.inputs)})"

    def decode(self, topics: Sequence[str], data: Union[str, bytes]) -> Dict[str, Any]:
        """
        Decode a log's topics and data into named parameters.

        Raises:
            InterfaceError: If the log does not fit this event's layout
        """
        indexed = [i for i in self.inputs if i.indexed]
        plain = [i for i in self.inputs if not i.indexed]

        # Non-anonymous events spend the first topic on the signature hash
        value_topics = list(topics[0 if self.anonymous else 1:])
        if len(value_topics) != len(indexed):
            raise InterfaceError(
                f"{self.name}: expected {len(indexed)} indexed topics, got {len(value_topics)}",
                code="DECODING_ERROR",
            )

        params: Dict[str, Any] = {}
        try:
            for position, (inp, topic) in enumerate(zip(indexed, value_topics)):
                key = inp.name or str(position)
                if _is_dynamic(inp.type):
                    params[key] = topic
                else:
                    params[key] = format_value(abi_decode([inp.type], _to_bytes(topic))[0])

            values = abi_decode([i.type for i in plain], _to_bytes(data)) if plain else ()
        except (DecodingError, ValueError, TypeError) as e:
            raise InterfaceError(f"{self.name}: cannot decode log: {e}", code="DECODING_ERROR")

        for position, (inp, value) in enumerate(zip(plain, values)):
            params[inp.name or str(len(indexed) + position)] = format_value(value)
        return params


@dataclass
class DecodedLog:
    """Result of matching a raw log against an interface."""
    name: str
    signature: str
    topic: str
    params: Dict[str, Any] = field(default_factory=dict)


class ContractInterface:
    """
    Method and event catalog of a single contract.

    Usage:
        ```python
        iface = ContractInterface.from_file("artifacts/Token.json")
        data = iface.encode_call("transfer", [recipient, 100])
        ```
    """

    def __init__(self, abi: List[Dict[str, Any]], name: Optional[str] = None):
        """
        Initialize from a JSON ABI.

        Args:
            abi: List of ABI entries
            name: Optional human readable contract name
        """
        self.name = name
        self.abi = abi
        self._functions: Dict[str, List[FunctionFragment]] = {}
        self._events_by_topic: Dict[str, EventFragment] = {}
        self._anonymous_events: List[EventFragment] = []

        for entry in abi:
            kind = entry.get("type", "function")
            if kind == "function":
                fragment = FunctionFragment.from_abi(entry)
                self._functions.setdefault(fragment.name, []).append(fragment)
            elif kind == "event":
                event = EventFragment.from_abi(entry)
                if event.anonymous:
                    self._anonymous_events.append(event)
                else:
                    self._events_by_topic[event.topic.lower()] = event

    @classmethod
    def from_json(cls, source: Union[str, List, Dict], name: Optional[str] = None) -> "ContractInterface":
        """
        Build an interface from ABI JSON.

        Accepts a bare ABI list or a build artifact holding an ``abi`` key,
        either already parsed or as a JSON string.
        """
        data = json.loads(source) if isinstance(source, str) else source
        if isinstance(data, dict):
            name = name or data.get("contractName")
            data = data.get("abi")
        if not isinstance(data, list):
            raise InterfaceError("ABI must be a list of entries", code="INVALID_ABI")
        return cls(data, name=name)

    @classmethod
    def from_file(cls, path: Union[str, Path], name: Optional[str] = None) -> "ContractInterface":
        """Load an interface from an ABI or artifact JSON file."""
        path = Path(path)
        interface = cls.from_json(path.read_text(encoding="utf-8"), name=name)
        if interface.name is None:
            interface.name = path.stem
        return interface

    @property
    def function_names(self) -> List[str]:
        return sorted(self._functions)

    @property
    def events(self) -> List[EventFragment]:
        return list(self._events_by_topic.values()) + list(self._anonymous_events)

    def has_function(self, method: str) -> bool:
        try:
            self.get_function(method)
        except InterfaceError:
            return False
        return True

    def get_function(self, method: str) -> FunctionFragment:
        """
        Resolve a method by name or full signature.

        Raises:
            InterfaceError: If the method is unknown or an overloaded name is ambiguous
        """
        if "(" in method:
            name = method.split("(", 1)[0]
            for fragment in self._functions.get(name, []):
                if fragment.signature == method.replace(" ", ""):
                    return fragment
            raise InterfaceError(f"Unknown method: {method}", code="UNKNOWN_METHOD")

        candidates = self._functions.get(method, [])
        if not candidates:
            raise InterfaceError(f"Unknown method: {method}", code="UNKNOWN_METHOD")
        if len(candidates) > 1:
            signatures = ", ".join(f.signature for f in candidates)
            raise InterfaceError(
                f"Ambiguous method {method}, use one of: {signatures}", code="AMBIGUOUS_METHOD"
            )
        return candidates[0]

    def encode_call(self, method: str, args: Sequence[Any]) -> str:
        """Encode call data for a method invocation."""
        return self.get_function(method).encode(args)

    def get_event(self, topic: str) -> Optional[EventFragment]:
        return self._events_by_topic.get(topic.lower())

    def parse_log(self, topics: Sequence[str], data: Union[str, bytes]) -> Optional[DecodedLog]:
        """
        Decode a raw log entry.

        Args:
            topics: Hex topics of the log
            data: Hex data of the log

        Returns:
            Decoded log, or None if no known event matches

        Raises:
            InterfaceError: If a matching event cannot decode the payload
        """
        if topics:
            event = self.get_event(topics[0])
            if event is not None:
                return DecodedLog(
                    name=event.name,
                    signature=event.signature,
                    topic=event.topic,
                    params=event.decode(topics, data),
                )

        # Anonymous events have no signature topic, try them by shape
        for event in self._anonymous_events:
            try:
                params = event.decode(topics, data)
            except InterfaceError:
                continue
            return DecodedLog(
                name=event.name,
                signature=event.signature,
                topic=topics[0] if topics else "",
                params=params,
            )
        return None

    def __repr__(self) -> str:
        return (
            f"ContractInterface(name={self.name}, functions={len(self._functions)}, "
            f"events={len(self.events)})"
        )


def decode_revert_reason(data: Union[str, bytes, None]) -> Optional[str]:
    """
    Decode a standard revert payload into a readable reason.

    Args:
        data: Revert data returned by the node

    Returns:
        Reason string, or None if the payload is empty or not standard
    """
    if isinstance(data, str) and not data.startswith("0x"):
        return None
    try:
        raw = _to_bytes(data)
    except ValueError:
        return None
    if len(raw) < 4:
        return None

    selector = encode_hex(raw[:4])
    try:
        if selector == ERROR_STRING_SELECTOR:
            return abi_decode(["string"], raw[4:])[0]
        if selector == PANIC_SELECTOR:
            code = abi_decode(["uint256"], raw[4:])[0]
            return f"panic 0x{code:02x}: {PANIC_REASONS.get(code, 'unknown panic code')}"
    except (DecodingError, ValueError):
        return None
    return None
