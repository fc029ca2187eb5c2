"""
MultiQR Types & Constants
==========================

Foundational type definitions, lookup tables, and error classes for
splitting a payload across several QR symbols. This module has ZERO
external dependencies beyond the Python standard library.

Tables:
  - Data capacity per (version, EC level), in bytes (data codewords)
  - Minimum slack per version (byte-mode segment header overhead)
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import Any, Optional, Union

# ═══════════════════════════════════════════════════════════════
# LIMITS
# ═══════════════════════════════════════════════════════════════

MIN_VERSION = 1
MAX_VERSION = 40
MAX_MICRO_VERSION = 4

# One leading byte per chunk carries its sequence index
INDEX_SIZE = 1
MAX_CHUNKS = 256


# ═══════════════════════════════════════════════════════════════
# ERROR CORRECTION LEVELS
# ═══════════════════════════════════════════════════════════════

class EcLevel(IntEnum):
    """Error correction levels, weakest first. Value = table column."""
    L = 0  # ~7% recovery
    M = 1  # ~15%
    Q = 2  # ~25%
    H = 3  # ~30%

    def to_qrcode(self) -> int:
        """Matching ``qrcode.constants.ERROR_CORRECT_*`` value."""
        return _QRCODE_EC[self]


# qrcode numbers its levels M=0, L=1, H=2, Q=3
_QRCODE_EC = {
    EcLevel.L: 1,
    EcLevel.M: 0,
    EcLevel.Q: 3,
    EcLevel.H: 2,
}


# ═══════════════════════════════════════════════════════════════
# SYMBOL VERSIONS
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Version:
    """
    QR symbol version (size class).

    Normal symbols run 1..40; micro symbols M1..M4 form a separate
    family that the encoder backend cannot build.
    """
    number: int
    micro: bool = False

    @classmethod
    def normal(cls, number: int) -> 'Version':
        return cls(number=number, micro=False)

    @classmethod
    def micro_version(cls, number: int) -> 'Version':
        if not 1 <= number <= MAX_MICRO_VERSION:
            raise InvalidSizeClass(f"Micro QR versions run M1..M{MAX_MICRO_VERSION}, got M{number}")
        return cls(number=number, micro=True)

    @property
    def row(self) -> int:
        """Zero-based capacity table row. Only defined for normal versions."""
        if self.micro or not MIN_VERSION <= self.number <= MAX_VERSION:
            raise InvalidSizeClass(f"No capacity row for version {self}")
        return self.number - 1

    def __str__(self) -> str:
        return f"M{self.number}" if self.micro else str(self.number)


VersionLike = Union[Version, int]


def as_version(version: VersionLike) -> Version:
    """Accept a Version or a plain int (normal version number)."""
    if isinstance(version, Version):
        return version
    if isinstance(version, int) and not isinstance(version, bool):
        return Version.normal(version)
    raise InvalidSizeClass(f"Not a QR version: {version!r}")


def as_ec_level(ec: Any) -> EcLevel:
    """Accept an EcLevel, its column index (0-3), or its letter."""
    if isinstance(ec, str):
        try:
            return EcLevel[ec.upper()]
        except KeyError:
            raise InvalidEcStrength(f"Unknown EC level: {ec!r}") from None
    if isinstance(ec, bool) or not isinstance(ec, int):
        raise InvalidEcStrength(f"Not an EC level: {ec!r}")
    try:
        return EcLevel(ec)
    except ValueError:
        raise InvalidEcStrength(f"Unknown EC level: {ec!r}") from None


# ═══════════════════════════════════════════════════════════════
# CAPACITY TABLE (data codewords, columns L M Q H)
# ═══════════════════════════════════════════════════════════════

DATA_CAPACITY = (
    (19, 16, 13, 9),            # 1
    (34, 28, 22, 16),           # 2
    (55, 44, 34, 26),           # 3
    (80, 64, 48, 36),           # 4
    (108, 86, 62, 46),          # 5
    (136, 108, 76, 60),         # 6
    (156, 124, 88, 66),         # 7
    (194, 154, 110, 86),        # 8
    (232, 182, 132, 100),       # 9
    (274, 216, 154, 122),       # 10
    (324, 254, 180, 140),       # 11
    (370, 290, 206, 158),       # 12
    (428, 334, 244, 180),       # 13
    (461, 365, 261, 197),       # 14
    (523, 415, 295, 223),       # 15
    (589, 453, 325, 253),       # 16
    (647, 507, 367, 283),       # 17
    (721, 563, 397, 313),       # 18
    (795, 627, 445, 341),       # 19
    (861, 669, 485, 385),       # 20
    (932, 714, 512, 406),       # 21
    (1006, 782, 568, 442),      # 22
    (1094, 860, 614, 464),      # 23
    (1174, 914, 664, 514),      # 24
    (1276, 1000, 718, 538),     # 25
    (1370, 1062, 754, 596),     # 26
    (1468, 1128, 808, 628),     # 27
    (1531, 1193, 871, 661),     # 28
    (1631, 1267, 911, 701),     # 29
    (1735, 1373, 985, 745),     # 30
    (1843, 1455, 1033, 793),    # 31
    (1955, 1541, 1115, 845),    # 32
    (2071, 1631, 1171, 901),    # 33
    (2191, 1725, 1231, 961),    # 34
    (2306, 1812, 1286, 986),    # 35
    (2434, 1914, 1354, 1054),   # 36
    (2566, 1992, 1426, 1096),   # 37
    (2702, 2102, 1502, 1142),   # 38
    (2812, 2216, 1582, 1222),   # 39
    (2956, 2334, 1666, 1276),   # 40
)

# Byte-mode header: 4-bit mode indicator + 8-bit (v1-9) or 16-bit (v10-40)
# character count, rounded up to whole bytes.
MIN_SLACK = tuple(2 if v < 10 else 3 for v in range(MIN_VERSION, MAX_VERSION + 1))


def capacity(version: VersionLike, ec: Any) -> int:
    """Total data bytes a symbol of this version/level can carry."""
    row = as_version(version).row
    return DATA_CAPACITY[row][as_ec_level(ec)]


def min_slack(version: VersionLike) -> int:
    """Smallest slack that always absorbs the encoder's segment header."""
    return MIN_SLACK[as_version(version).row]


def check_capacity_table(table=DATA_CAPACITY) -> None:
    """
    Verify the table shape and ordering invariants:
    capacity never shrinks as the version grows, and never grows
    as the EC level strengthens.
    """
    if len(table) != MAX_VERSION:
        raise MultiQrError(f"Capacity table needs {MAX_VERSION} rows, got {len(table)}")
    for i, row in enumerate(table):
        if len(row) != len(EcLevel):
            raise MultiQrError(f"Capacity row {i + 1} has {len(row)} columns")
        for ec in range(1, len(row)):
            if row[ec] > row[ec - 1]:
                raise MultiQrError(
                    f"Capacity grows with EC level at version {i + 1}: {row}")
        if i > 0:
            for ec, (prev, cur) in enumerate(zip(table[i - 1], row)):
                if cur < prev:
                    raise MultiQrError(
                        f"Capacity shrinks from version {i} to {i + 1} "
                        f"at level {EcLevel(ec).name}")


# ═══════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Chunk:
    """
    One index-tagged slice of a payload.

    Wire format (1 + len(data) bytes):
        index : uint8  (1 byte) — position in the sequence, 0-based
        data  : bytes  (variable) — contiguous slice of the payload
    """
    index: int
    data: bytes

    def __post_init__(self):
        if not 0 <= self.index < MAX_CHUNKS:
            raise TooManyChunks(f"Chunk index {self.index} does not fit in one byte")

    def pack(self) -> bytes:
        """Serialize to wire format."""
        return bytes((self.index,)) + self.data

    @classmethod
    def unpack(cls, raw: bytes) -> 'Chunk':
        """Deserialize from wire format."""
        if len(raw) < INDEX_SIZE:
            raise MultiQrFormatError("Chunk needs at least the index byte")
        return cls(index=raw[0], data=bytes(raw[1:]))

    def __len__(self) -> int:
        return INDEX_SIZE + len(self.data)


@dataclass(frozen=True)
class EncodedSymbol:
    """A chunk after the QR backend has built it into a symbol."""
    chunk: Chunk
    version: Version
    ec_level: EcLevel
    code: Any  # qrcode.QRCode

    @property
    def index(self) -> int:
        return self.chunk.index

    @property
    def modules(self):
        """Module matrix without quiet zone (rows of bools)."""
        return self.code.modules


# ═══════════════════════════════════════════════════════════════
# ERROR CLASSES
# ═══════════════════════════════════════════════════════════════

class MultiQrError(Exception):
    """Base error for all MultiQR operations."""
    pass

class InvalidSizeClass(MultiQrError):
    """Version outside the supported table."""
    pass

class InvalidEcStrength(MultiQrError):
    """EC level not one of L, M, Q, H."""
    pass

class UnsupportedSizeClass(MultiQrError):
    """Version family the QR backend cannot build (micro QR)."""
    pass

class InsufficientCapacity(MultiQrError):
    """Slack plus the index byte leave no room for payload data."""
    pass

class TooManyChunks(MultiQrError):
    """Payload needs more chunks than one index byte can address."""
    pass

class EncodingFailed(MultiQrError):
    """The QR backend rejected a chunk."""

    def __init__(self, chunk_index: int, cause: Optional[BaseException] = None):
        self.chunk_index = chunk_index
        self.cause = cause
        super().__init__(f"Encoding chunk {chunk_index} failed: {cause!r}")

class MultiQrFormatError(MultiQrError):
    """Chunk set cannot be reassembled (gap, duplicate, malformed chunk)."""
    pass


check_capacity_table()
