from __future__ import annotations

import struct

from autoliquid_indexer.app.domain.errors import EventDecodeError

_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_SUI_ADDRESS_LEN = 32


class BcsReader:
    """
    Sequential reader for BCS-encoded Move structs.

    BCS is little-endian and positional; a struct is the concatenation of its
    fields. Only the primitive types used by Bluefin events are supported.
    """

    def __init__(self, data: bytes, *, type_name: str = "") -> None:
        self._data = bytes(data)
        self._pos = 0
        self._type_name = type_name

    def _take(self, size: int, what: str) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise EventDecodeError(
                f"Unexpected end of {self._type_name or 'BCS'} payload while reading {what}",
                {"offset": self._pos, "needed": size, "length": len(self._data)},
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def read_address(self) -> str:
        # ObjectID / address: fixed 32 bytes, rendered as 0x-prefixed hex
        return "0x" + self._take(_SUI_ADDRESS_LEN, "address").hex()

    def read_u32(self) -> int:
        return _U32.unpack(self._take(4, "u32"))[0]

    def read_i32(self) -> int:
        # Move I32 is `struct I32 { bits: u32 }`, i.e. two's complement bits
        return _I32.unpack(self._take(4, "i32"))[0]

    def read_u64(self) -> int:
        return _U64.unpack(self._take(8, "u64"))[0]

    def read_u128(self) -> int:
        return int.from_bytes(self._take(16, "u128"), byteorder="little", signed=False)

    def finish(self) -> None:
        """Fail if bytes remain after the struct was fully read."""
        remaining = len(self._data) - self._pos
        if remaining:
            raise EventDecodeError(
                f"Trailing bytes after {self._type_name or 'BCS'} payload",
                {"remaining": remaining, "length": len(self._data)},
            )
