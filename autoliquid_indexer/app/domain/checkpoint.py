"""
Read-only view of checkpoint data handed over by the ingestion engine.

Only the parts of a Sui checkpoint transaction the extractor looks at are
modelled here. Addresses and object ids are kept as hex strings and compared
through `normalize_sui_address`.
"""
from __future__ import annotations

from dataclasses import dataclass, field

_SUI_ADDRESS_HEX_LEN = 64


def normalize_sui_address(address: str) -> str:
    """Canonical `0x`-prefixed, lower-case, 32-byte hex form of an address."""
    s = address.strip().lower()
    if s.startswith("0x"):
        s = s[2:]
    if not s or len(s) > _SUI_ADDRESS_HEX_LEN:
        raise ValueError(f"Invalid Sui address: {address!r}")
    int(s, 16)
    return "0x" + s.rjust(_SUI_ADDRESS_HEX_LEN, "0")


@dataclass(frozen=True)
class StructTag:
    """Move type of an emitted event: `address::module::name`."""

    address: str
    module: str
    name: str


@dataclass(frozen=True)
class Event:
    type_: StructTag
    contents: bytes
    sender: str | None = None


@dataclass(frozen=True)
class InputObject:
    """
    Object consumed by a transaction.

    `type_address` is the package address of the object's Move type, or None
    for objects without one (packages).
    """

    object_id: str
    type_address: str | None = None


@dataclass(frozen=True)
class MoveCall:
    package: str
    module: str
    function: str


@dataclass(frozen=True)
class OtherCommand:
    """Any programmable transaction command that is not a Move call."""

    kind: str


Command = MoveCall | OtherCommand


@dataclass(frozen=True)
class ExecutionStatus:
    success: bool
    error: str | None = None
    command: int | None = None

    @classmethod
    def ok(cls) -> "ExecutionStatus":
        return cls(success=True)

    @classmethod
    def failure(cls, error: str, command: int | None = None) -> "ExecutionStatus":
        return cls(success=False, error=error, command=command)


@dataclass(frozen=True)
class CheckpointTransaction:
    digest: str
    sender: str
    status: ExecutionStatus
    input_objects: tuple[InputObject, ...] = ()
    commands: tuple[Command, ...] = ()
    # None when the transaction emitted no events block at all
    events: tuple[Event, ...] | None = None

    def first_move_call_package(self) -> str:
        """Package of the first command if it is a Move call, else ''."""
        if self.commands and isinstance(self.commands[0], MoveCall):
            return self.commands[0].package
        return ""


@dataclass(frozen=True)
class Checkpoint:
    sequence_number: int
    timestamp_ms: int
    transactions: tuple[CheckpointTransaction, ...] = field(default_factory=tuple)


# (transaction, checkpoint number, checkpoint timestamp in ms)
CheckpointTxnData = tuple[CheckpointTransaction, int, int]
