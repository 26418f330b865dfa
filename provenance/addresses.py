# provenance/addresses.py

from __future__ import annotations

import re
from dataclasses import dataclass

_ADDRESS_RE = re.compile(r"^([A-Z])(\d+)$")


@dataclass(frozen=True, order=True)
class Address:
    """
    A slot position inside labware.

    Rows are lettered (A = 1), columns are numbered from 1.
    """

    row: int
    column: int

    @classmethod
    def parse(cls, text: str) -> "Address":
        value = (text or "").strip().upper()
        m = _ADDRESS_RE.match(value)
        if not m:
            raise ValueError(f"Invalid address string: {text!r}")
        return cls(ord(m.group(1)) - ord("A") + 1, int(m.group(2)))

    def __str__(self) -> str:
        return f"{chr(ord('A') + self.row - 1)}{self.column}"


def describe_addresses(addresses) -> str:
    return ", ".join(str(ad) for ad in addresses)
