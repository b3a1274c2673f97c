"""Lexicographically sortable 128-bit identifiers (ULIDs)."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE = {char: index for index, char in enumerate(_ALPHABET)}
_DECODE.update({char.lower(): index for char, index in list(_DECODE.items()) if char.isalpha()})

_LENGTH = 26
_BITS = 128
_RANDOM_BITS = 80
_TIMESTAMP_MASK = (1 << 48) - 1
_MAX = (1 << _BITS) - 1


@dataclass(frozen=True, order=True)
class Ulid:
    """A 48-bit millisecond timestamp followed by 80 random bits."""

    value: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("Ulid value must be an integer")
        if not 0 <= self.value <= _MAX:
            raise ValueError("Ulid value does not fit in 128 bits")

    @classmethod
    def new(cls) -> Ulid:
        """Create a fresh identifier stamped with the current time."""
        timestamp = (time.time_ns() // 1_000_000) & _TIMESTAMP_MASK
        randomness = int.from_bytes(os.urandom(_RANDOM_BITS // 8), "big")
        return cls((timestamp << _RANDOM_BITS) | randomness)

    @classmethod
    def from_string(cls, text: str) -> Ulid:
        """Parse the 26 character Crockford base32 form."""
        if not isinstance(text, str):
            raise TypeError("Ulid text must be a string")
        if len(text) != _LENGTH:
            raise ValueError(f"invalid Ulid length: expected {_LENGTH}, got {len(text)}")
        value = 0
        for char in text:
            try:
                digit = _DECODE[char]
            except KeyError:
                raise ValueError(f"invalid character in Ulid: {char!r}") from None
            value = (value << 5) | digit
        if value > _MAX:
            raise ValueError("Ulid value overflows 128 bits")
        return cls(value)

    def __str__(self) -> str:
        remaining = self.value
        chars = []
        for _ in range(_LENGTH):
            chars.append(_ALPHABET[remaining & 0x1F])
            remaining >>= 5
        return "".join(reversed(chars))

    def __repr__(self) -> str:
        return f"Ulid({str(self)!r})"

    def timestamp_ms(self) -> int:
        """Milliseconds since the Unix epoch encoded in this identifier."""
        return self.value >> _RANDOM_BITS