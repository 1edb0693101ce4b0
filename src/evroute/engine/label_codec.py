"""Fixed-width binary encoding of search labels.

A label is packed into a 196-bit big-endian stream, zero-padded to 25 bytes:

  ┌──────────────┬──────┬──────────────────────────────────────────────┐
  │ field        │ bits │ encoding                                     │
  ├──────────────┼──────┼──────────────────────────────────────────────┤
  │ duration     │  22  │ round(s × 10), unsigned                      │
  │ energy       │  22  │ round(kWh × 1000), two's complement          │
  │ cost         │  20  │ round(cost × 100), unsigned                  │
  │ predecessor  │  32  │ label index, unsigned                        │
  │ index        │  32  │ label index, unsigned                        │
  │ node         │  34  │ node id (below)                              │
  │ preceding    │  34  │ node id; the start label stores "s"          │
  └──────────────┴──────┴──────────────────────────────────────────────┘

Node ids pack as ``tag(3) | has_number(1) | number(8) | has_suffix(1) |
level(9) | capacity(10) | reserved(2)``. ``"c12-40-150"`` is tag ``c``,
number 12, level 40, capacity 150.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from evroute.engine.errors import LabelCodecError

_TAGS = {"s": 0, "a": 1, "b": 2, "i": 3, "c": 4, "o": 5, "d": 6}
_TAG_LETTERS = {code: letter for letter, code in _TAGS.items()}

_TAG_BITS = 3
_NUMBER_BITS = 8
_LEVEL_BITS = 9
_CAPACITY_BITS = 10
_RESERVED_BITS = 2
NODE_ID_BITS = _TAG_BITS + 1 + _NUMBER_BITS + 1 + _LEVEL_BITS + _CAPACITY_BITS + _RESERVED_BITS

_DURATION_BITS = 22
_ENERGY_BITS = 22
_COST_BITS = 20
_INDEX_BITS = 32

LABEL_BITS = _DURATION_BITS + _ENERGY_BITS + _COST_BITS + 2 * _INDEX_BITS + 2 * NODE_ID_BITS
LABEL_BYTES = (LABEL_BITS + 7) // 8
_PAD_BITS = LABEL_BYTES * 8 - LABEL_BITS

_NODE_ID_RE = re.compile(r"^([a-z])(\d{1,3})?(?:-(\d{1,3})-(\d{1,4}))?$")


class PackableLabel(Protocol):
    """Fields of a search label that survive packing."""

    node_id: str
    duration_s: float
    energy_kwh: float
    cost: float
    predecessor_index: int
    index: int
    preceding_node: str | None


@dataclass(frozen=True)
class LabelRecord:
    """A decoded label, at the codec's fixed-point precision."""

    node_id: str
    duration_s: float
    energy_kwh: float
    cost: float
    predecessor_index: int
    index: int
    preceding_node: str | None


# ═══════════════════════════════════════════════════════════════════════════
# Bit-field helpers
# ═══════════════════════════════════════════════════════════════════════════

def _unsigned(value: int, bits: int, name: str) -> int:
    if not 0 <= value < (1 << bits):
        raise LabelCodecError(f"{name}={value} does not fit in {bits} unsigned bits")
    return value


def _signed(value: int, bits: int, name: str) -> int:
    half = 1 << (bits - 1)
    if not -half <= value < half:
        raise LabelCodecError(f"{name}={value} does not fit in {bits} signed bits")
    return value & ((1 << bits) - 1)


def _from_signed(raw: int, bits: int) -> int:
    return raw - (1 << bits) if raw & (1 << (bits - 1)) else raw


class _BitReader:
    """Reads consecutive big-endian fields out of one integer."""

    def __init__(self, value: int, total_bits: int) -> None:
        self._value = value
        self._remaining = total_bits

    def take(self, bits: int) -> int:
        self._remaining -= bits
        return (self._value >> self._remaining) & ((1 << bits) - 1)


# ═══════════════════════════════════════════════════════════════════════════
# Node ids
# ═══════════════════════════════════════════════════════════════════════════

def _pack_node_id(node_id: str) -> int:
    match = _NODE_ID_RE.match(node_id)
    if match is None or match.group(1) not in _TAGS:
        raise LabelCodecError(f"malformed node id {node_id!r}")
    letter, number, level, capacity = match.groups()

    packed = _TAGS[letter]
    packed = (packed << 1) | (number is not None)
    packed = (packed << _NUMBER_BITS) | _unsigned(int(number or 0), _NUMBER_BITS, "number")
    packed = (packed << 1) | (level is not None)
    packed = (packed << _LEVEL_BITS) | _unsigned(int(level or 0), _LEVEL_BITS, "level")
    packed = (packed << _CAPACITY_BITS) | _unsigned(int(capacity or 0), _CAPACITY_BITS, "capacity")
    return packed << _RESERVED_BITS


def _unpack_node_id(packed: int) -> str:
    reader = _BitReader(packed, NODE_ID_BITS)
    tag = reader.take(_TAG_BITS)
    has_number = reader.take(1)
    number = reader.take(_NUMBER_BITS)
    has_suffix = reader.take(1)
    level = reader.take(_LEVEL_BITS)
    capacity = reader.take(_CAPACITY_BITS)

    if tag not in _TAG_LETTERS:
        raise LabelCodecError(f"unknown node tag {tag:03b}")
    node_id = _TAG_LETTERS[tag]
    if has_number:
        node_id += str(number)
    if has_suffix:
        node_id += f"-{level}-{capacity}"
    return node_id


def encode_node_id(node_id: str) -> str:
    """Pack a node id into a 34-character ``"0"``/``"1"`` string.

    >>> encode_node_id("s")
    '0000000000000000000000000000000000'
    """
    return format(_pack_node_id(node_id), f"0{NODE_ID_BITS}b")


def decode_node_id(bits: str) -> str:
    """Inverse of :func:`encode_node_id`."""
    if len(bits) != NODE_ID_BITS or set(bits) - {"0", "1"}:
        raise LabelCodecError(f"expected {NODE_ID_BITS} binary digits, got {bits!r}")
    return _unpack_node_id(int(bits, 2))


# ═══════════════════════════════════════════════════════════════════════════
# Labels
# ═══════════════════════════════════════════════════════════════════════════

def encode_label(label: PackableLabel) -> bytes:
    """Pack one label into :data:`LABEL_BYTES` bytes.

    Raises
    ------
    LabelCodecError
        When a field is negative where it must not be, too large for its
        width, or the node ids are malformed.
    """
    fields = (
        (_unsigned(round(label.duration_s * 10), _DURATION_BITS, "duration"), _DURATION_BITS),
        (_signed(round(label.energy_kwh * 1000), _ENERGY_BITS, "energy"), _ENERGY_BITS),
        (_unsigned(round(label.cost * 100), _COST_BITS, "cost"), _COST_BITS),
        (_unsigned(label.predecessor_index, _INDEX_BITS, "predecessor_index"), _INDEX_BITS),
        (_unsigned(label.index, _INDEX_BITS, "index"), _INDEX_BITS),
        (_pack_node_id(label.node_id), NODE_ID_BITS),
        (_pack_node_id(label.preceding_node or "s"), NODE_ID_BITS),
    )
    packed = 0
    for value, bits in fields:
        packed = (packed << bits) | value
    return (packed << _PAD_BITS).to_bytes(LABEL_BYTES, "big")


def decode_label(data: bytes) -> LabelRecord:
    """Unpack one :data:`LABEL_BYTES`-byte record."""
    if len(data) != LABEL_BYTES:
        raise LabelCodecError(f"label record must be {LABEL_BYTES} bytes, got {len(data)}")
    reader = _BitReader(int.from_bytes(data, "big") >> _PAD_BITS, LABEL_BITS)

    duration = reader.take(_DURATION_BITS) / 10
    energy = _from_signed(reader.take(_ENERGY_BITS), _ENERGY_BITS) / 1000
    cost = reader.take(_COST_BITS) / 100
    predecessor_index = reader.take(_INDEX_BITS)
    index = reader.take(_INDEX_BITS)
    node_id = _unpack_node_id(reader.take(NODE_ID_BITS))
    preceding = _unpack_node_id(reader.take(NODE_ID_BITS))

    return LabelRecord(
        node_id=node_id,
        duration_s=duration,
        energy_kwh=energy,
        cost=cost,
        predecessor_index=predecessor_index,
        index=index,
        preceding_node=None if (node_id, preceding) == ("s", "s") else preceding,
    )


def encode_path(labels: Iterable[PackableLabel]) -> bytes:
    """Concatenate the records of a label chain."""
    return b"".join(encode_label(label) for label in labels)


def decode_path(data: bytes) -> list[LabelRecord]:
    if len(data) % LABEL_BYTES:
        raise LabelCodecError(f"path buffer of {len(data)} bytes is not a whole number of records")
    return [decode_label(data[i:i + LABEL_BYTES]) for i in range(0, len(data), LABEL_BYTES)]
