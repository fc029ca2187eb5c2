"""
MultiQR Decoder — chunk reassembly
===================================

Rebuilds a payload from its index-tagged chunks. Chunks may arrive in
any order (the order symbols happened to be scanned); each carries its
own position in the leading index byte.

Accepted inputs: Chunk objects, raw chunk bytes as read from a symbol,
or EncodedSymbol objects. Scanning images back to bytes is left to a
QR reader.
"""

from typing import Iterable, List, Union

from mqr_types import Chunk, EncodedSymbol, MultiQrFormatError

ChunkLike = Union[Chunk, EncodedSymbol, bytes, bytearray, memoryview]


def _as_chunk(item: ChunkLike) -> Chunk:
    if isinstance(item, Chunk):
        return item
    if isinstance(item, EncodedSymbol):
        return item.chunk
    if isinstance(item, (bytes, bytearray, memoryview)):
        return Chunk.unpack(bytes(item))
    raise TypeError(f"Cannot read a chunk from {type(item).__name__}")


def reassemble(chunks: Iterable[ChunkLike]) -> bytes:
    """
    Sort chunks by index and concatenate their data.

    The indices must be exactly 0..n-1: a duplicate or a gap means the
    set is incomplete or mixes two payloads, and raises MultiQrFormatError.
    """
    ordered: List[Chunk] = sorted((_as_chunk(c) for c in chunks), key=lambda c: c.index)
    if not ordered:
        raise MultiQrFormatError("No chunks to reassemble")

    for expected, chunk in enumerate(ordered):
        if chunk.index != expected:
            if chunk.index < expected:
                raise MultiQrFormatError(f"Duplicate chunk index {chunk.index}")
            raise MultiQrFormatError(
                f"Missing chunk index {expected} (next present: {chunk.index})")

    return b''.join(c.data for c in ordered)


def decode_symbols(symbols: Iterable[EncodedSymbol]) -> bytes:
    """Reassemble the payload carried by a MultiQrCode or list of symbols."""
    return reassemble(list(symbols))
