"""
MultiQR Rendering — turning encoded symbols into pixels or text
================================================================

Thin layer over the ``qrcode`` image factories (Pillow backend):
  - PIL image per symbol
  - PNG series on disk: <stem>.0.png, <stem>.1.png, ...
  - Text rendering by dark/light glyph substitution
  - Compact bitmap string: "<width>:<base64 of packed modules>"
"""

import base64
from pathlib import Path
from typing import Iterable, List, Optional

from mqr_types import EncodedSymbol


def to_image(symbol: EncodedSymbol, fill_color="black", back_color="white"):
    """Render one symbol to a PIL image (quiet zone included)."""
    return symbol.code.make_image(fill_color=fill_color, back_color=back_color).get_image()


def save_all(symbols: Iterable[EncodedSymbol], path, fill_color="black",
             back_color="white") -> List[str]:
    """
    Write each symbol as a PNG, numbered by chunk index.

    ``archive.png`` becomes ``archive.0.png``, ``archive.1.png``, ...
    Returns the written paths in index order.
    """
    base = Path(path)
    base.parent.mkdir(parents=True, exist_ok=True)
    paths = []
    for symbol in sorted(symbols, key=lambda s: s.index):
        out = base.with_suffix(f".{symbol.index}.png")
        to_image(symbol, fill_color, back_color).save(out, format='PNG')
        paths.append(str(out))
    return paths


def _matrix(symbol: EncodedSymbol, border: int) -> List[List[bool]]:
    """Module grid with a quiet zone of ``border`` modules."""
    grid = symbol.code.get_matrix()
    extra = border - symbol.code.border
    if extra == 0:
        return grid
    if extra < 0:
        return [row[-extra:extra] for row in grid[-extra:extra]]
    width = len(grid) + 2 * extra
    pad = [False] * extra
    return ([[False] * width for _ in range(extra)]
            + [pad + row + pad for row in grid]
            + [[False] * width for _ in range(extra)])


def to_text(symbol: EncodedSymbol, dark: str = "██", light: str = "  ",
            border: Optional[int] = None) -> str:
    """
    Render a symbol as text, one line per module row.

    Defaults to two full blocks per dark module so the output stays
    roughly square in a terminal. ``border`` defaults to the symbol's own.
    """
    if border is None:
        border = symbol.code.border
    return "\n".join(
        "".join(dark if m else light for m in row)
        for row in _matrix(symbol, border)
    )


def to_bitmap_string(symbol: EncodedSymbol) -> str:
    """
    Pack the module matrix (no quiet zone) one bit per module, row-major,
    MSB first, dark = 1. Trailing bits of the last byte are zero.
    """
    modules = symbol.modules
    width = len(modules)
    packed = bytearray()
    acc = 0
    nbits = 0
    for row in modules:
        for m in row:
            acc = (acc << 1) | (1 if m else 0)
            nbits += 1
            if nbits == 8:
                packed.append(acc)
                acc = 0
                nbits = 0
    if nbits:
        packed.append(acc << (8 - nbits))
    return f"{width}:{base64.b64encode(bytes(packed)).decode('ascii')}"


def parse_bitmap_string(text: str) -> List[List[bool]]:
    """Inverse of to_bitmap_string: back to a square bool matrix."""
    width_str, _, b64 = text.partition(':')
    width = int(width_str)
    packed = base64.b64decode(b64)
    bits = [(byte >> (7 - i)) & 1 == 1 for byte in packed for i in range(8)]
    return [bits[r * width:(r + 1) * width] for r in range(width)]
