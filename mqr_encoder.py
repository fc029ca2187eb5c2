"""
MultiQR Encoder — payload segmentation across QR symbols
=========================================================

Splits a payload that does not fit in one QR symbol into index-tagged
chunks sized for a fixed version/EC level, then builds one symbol per
chunk with the ``qrcode`` library.

Chunk layout: [index:uint8][payload slice]. Every symbol of a set uses
the same version and EC level, so each chunk holds at most
capacity - slack bytes including its index byte.
"""

import json
import logging
from typing import Any, Iterator, List, Optional

import qrcode
from qrcode.util import QRData, MODE_8BIT_BYTE

from mqr_types import (
    INDEX_SIZE, MAX_CHUNKS,
    EcLevel, Version, VersionLike, Chunk, EncodedSymbol,
    InsufficientCapacity, TooManyChunks, UnsupportedSizeClass, EncodingFailed,
    as_version, as_ec_level, capacity, min_slack,
)

logger = logging.getLogger(__name__)

DEFAULT_VERSION = Version.normal(40)
DEFAULT_EC_LEVEL = EcLevel.L


# ═══════════════════════════════════════════════════════════════
# QR BACKEND
# ═══════════════════════════════════════════════════════════════

class SymbolEncoder:
    """
    Builds a single QR symbol at an exact version and EC level.

    The data is added as one 8-bit byte segment so the bit cost is
    predictable: 4 (mode) + 8 or 16 (count) + 8 per byte. The version
    is pinned; ``qrcode`` raises DataOverflowError instead of growing it.
    """

    def __init__(self, box_size: int = 10, border: int = 4,
                 mask_pattern: Optional[int] = None):
        self.box_size = box_size
        self.border = border
        self.mask_pattern = mask_pattern

    def encode(self, data: bytes, version: Version, ec: EcLevel) -> qrcode.QRCode:
        qr = qrcode.QRCode(
            version=version.number,
            error_correction=ec.to_qrcode(),
            box_size=self.box_size,
            border=self.border,
            mask_pattern=self.mask_pattern,
        )
        qr.add_data(QRData(data, mode=MODE_8BIT_BYTE))
        qr.make(fit=False)
        return qr


# ═══════════════════════════════════════════════════════════════
# CHUNK PLANNING
# ═══════════════════════════════════════════════════════════════

def chunk_data_size(version: VersionLike, ec: Any, slack: int) -> int:
    """
    Payload bytes per chunk once the index byte and slack are withheld.

    Raises UnsupportedSizeClass for micro versions (checked first),
    InvalidSizeClass / InvalidEcStrength for out-of-table arguments,
    InsufficientCapacity when nothing is left for data.
    """
    version = as_version(version)
    if version.micro:
        raise UnsupportedSizeClass(f"Micro QR version {version} is not supported")
    if isinstance(slack, bool) or not isinstance(slack, int):
        raise TypeError(f"slack must be an int, got {type(slack).__name__}")
    if slack < 0:
        raise ValueError(f"slack must be non-negative, got {slack}")

    total = capacity(version, ec)
    per_chunk = total - (INDEX_SIZE + slack)
    if per_chunk <= 0:
        raise InsufficientCapacity(
            f"Version {version}-{as_ec_level(ec).name} holds {total} bytes; "
            f"slack {slack} plus the index byte leaves {per_chunk}")
    return per_chunk


def plan_chunks(payload: Any, version: VersionLike, ec: Any, slack: int) -> List[Chunk]:
    """Partition a payload into index-tagged chunks without encoding them."""
    raw = _serialize(payload)
    per_chunk = chunk_data_size(version, ec, slack)

    # An empty payload still travels as one (empty) chunk
    count = max(1, -(-len(raw) // per_chunk))
    if count > MAX_CHUNKS:
        raise TooManyChunks(
            f"{len(raw)} bytes at {per_chunk} bytes/chunk needs {count} chunks, "
            f"index byte addresses {MAX_CHUNKS}")

    return [
        Chunk(index=i, data=raw[i * per_chunk:(i + 1) * per_chunk])
        for i in range(count)
    ]


def _serialize(data: Any) -> bytes:
    """Serialize input to bytes. Accepts bytes-like, str, or JSON-able."""
    if isinstance(data, bytes):
        return data
    elif isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    elif isinstance(data, str):
        return data.encode('utf-8')
    elif isinstance(data, (dict, list, tuple, int, float, bool)):
        return json.dumps(data, separators=(',', ':'), ensure_ascii=False).encode('utf-8')
    raise TypeError(f"Cannot segment payload of type {type(data).__name__}")


# ═══════════════════════════════════════════════════════════════
# SEGMENTER
# ═══════════════════════════════════════════════════════════════

class Segmenter:
    """
    Splits payloads across as many QR symbols as needed.

    Usage:
        segmenter = Segmenter()
        symbols = segmenter.segment(data, version=20, ec=EcLevel.M, slack=3)
        symbols = segmenter.segment_default_max(data)
    """

    def __init__(self, encoder=None):
        self.encoder = encoder if encoder is not None else SymbolEncoder()

    def segment(self, payload: Any, version: VersionLike, ec: Any,
                slack: int) -> List[EncodedSymbol]:
        """
        Encode a payload as an ordered list of symbols.

        All-or-nothing: the first chunk the backend rejects raises
        EncodingFailed and no symbols are returned.
        """
        return list(self.iter_segment(payload, version, ec, slack))

    def iter_segment(self, payload: Any, version: VersionLike, ec: Any,
                     slack: int) -> Iterator[EncodedSymbol]:
        """
        Streaming form of segment(). Planning errors are raised when the
        first symbol is requested, before anything is encoded.
        """
        version = as_version(version)
        chunks = plan_chunks(payload, version, ec, slack)
        ec = as_ec_level(ec)
        logger.debug(
            "Segmenting %d bytes into %d chunk(s) at version %s-%s, slack %d",
            sum(len(c.data) for c in chunks), len(chunks), version, ec.name, slack)

        for chunk in chunks:
            try:
                code = self.encoder.encode(chunk.pack(), version, ec)
            except Exception as e:
                logger.warning("Chunk %d/%d rejected by QR backend: %s",
                               chunk.index, len(chunks), e)
                raise EncodingFailed(chunk.index, e) from e
            yield EncodedSymbol(chunk=chunk, version=version, ec_level=ec, code=code)

    def segment_default(self, payload: Any, version: VersionLike,
                        ec: Any) -> List[EncodedSymbol]:
        """segment() with the minimum safe slack for the version."""
        version = as_version(version)
        if version.micro:
            raise UnsupportedSizeClass(f"Micro QR version {version} is not supported")
        return self.segment(payload, version, ec, min_slack(version))

    def segment_default_max(self, payload: Any) -> List[EncodedSymbol]:
        """Largest symbols at the weakest EC level: fewest chunks."""
        return self.segment_default(payload, DEFAULT_VERSION, DEFAULT_EC_LEVEL)


# ═══════════════════════════════════════════════════════════════
# SYMBOL SET
# ═══════════════════════════════════════════════════════════════

class MultiQrCode:
    """
    An ordered set of QR symbols that together carry one payload.

    Usage:
        multi = MultiQrCode.encode(data, version=10, ec=EcLevel.Q)
        multi.save("out/archive.png")   # out/archive.0.png, archive.1.png, ...
    """

    def __init__(self, symbols: List[EncodedSymbol]):
        self.symbols = list(symbols)

    @classmethod
    def encode(cls, payload: Any, version: VersionLike = DEFAULT_VERSION,
               ec: Any = DEFAULT_EC_LEVEL, slack: Optional[int] = None,
               segmenter: Optional[Segmenter] = None) -> 'MultiQrCode':
        segmenter = segmenter or Segmenter()
        if slack is None:
            return cls(segmenter.segment_default(payload, version, ec))
        return cls(segmenter.segment(payload, version, ec, slack))

    @classmethod
    def default(cls, payload: Any,
                segmenter: Optional[Segmenter] = None) -> 'MultiQrCode':
        """Version 40, level L, minimum slack."""
        segmenter = segmenter or Segmenter()
        return cls(segmenter.segment_default_max(payload))

    def __len__(self) -> int:
        return len(self.symbols)

    def __iter__(self):
        return iter(self.symbols)

    def __getitem__(self, i):
        return self.symbols[i]

    def save(self, path, **kwargs) -> List[str]:
        """Write one PNG per symbol next to ``path``; see mqr_render.save_all."""
        from mqr_render import save_all
        return save_all(self.symbols, path, **kwargs)

    def to_text(self, **kwargs) -> List[str]:
        from mqr_render import to_text
        return [to_text(s, **kwargs) for s in self.symbols]

    def to_bitmap_strings(self) -> List[str]:
        from mqr_render import to_bitmap_string
        return [to_bitmap_string(s) for s in self.symbols]
