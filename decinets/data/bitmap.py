"""6x4 digit bitmaps decoded into two-level decimal input vectors.

The decoder reads uncompressed Windows bitmaps (1, 8, 24 or 32 bits per
pixel). Every pixel is reduced to its luminance and mapped to the ``low``
level when darker than ``threshold`` and to the ``high`` level otherwise.
Rows are emitted top to bottom, left to right, regardless of the storage
order of the file.
"""

from __future__ import annotations

import struct
from decimal import Decimal
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from ..core.arithmetic import Number, to_decimal
from ..core.types import Sample
from .registry import SampleSet, register_dataset, split_control

WIDTH = 4
HEIGHT = 6
PIXELS = WIDTH * HEIGHT
LUMINANCE_THRESHOLD = 128
SUFFIXES: Tuple[str, ...] = ("",) + tuple(f"_{i}" for i in range(10))

_FILE_HEADER = struct.Struct("<2sIHHI")
_INFO_HEADER = struct.Struct("<IiiHHIIiiII")

# '#' marks a light pixel, '.' a dark one
GLYPHS: Tuple[Tuple[str, ...], ...] = (
    (".##.", "#..#", "#..#", "#..#", "#..#", ".##."),
    ("..#.", ".##.", "..#.", "..#.", "..#.", ".###"),
    (".##.", "#..#", "..#.", ".#..", "#...", "####"),
    ("###.", "...#", ".##.", "...#", "...#", "###."),
    ("#..#", "#..#", "####", "...#", "...#", "...#"),
    ("####", "#...", "###.", "...#", "...#", "###."),
    (".##.", "#...", "###.", "#..#", "#..#", ".##."),
    ("####", "...#", "..#.", ".#..", ".#..", ".#.."),
    (".##.", "#..#", ".##.", "#..#", "#..#", ".##."),
    (".##.", "#..#", "#..#", ".###", "...#", ".##."),
)


class BitmapError(ValueError):
    """Raised for bitmaps the decoder cannot interpret."""


def _luminance(payload: bytes, *, width: int, height: int) -> np.ndarray:
    if len(payload) < _FILE_HEADER.size + _INFO_HEADER.size:
        raise BitmapError("file is too short to be a bitmap")
    magic, _, _, _, offset = _FILE_HEADER.unpack_from(payload, 0)
    if magic != b"BM":
        raise BitmapError("missing BM signature")
    (
        header_size,
        bmp_width,
        bmp_height,
        _planes,
        bpp,
        compression,
        _image_size,
        _xppm,
        _yppm,
        colors_used,
        _important,
    ) = _INFO_HEADER.unpack_from(payload, _FILE_HEADER.size)
    if compression not in (0, 3):
        raise BitmapError(f"compressed bitmaps are not supported (mode {compression})")
    if bmp_width != width or abs(bmp_height) != height:
        raise BitmapError(
            f"expected a {width}x{height} bitmap, got {bmp_width}x{abs(bmp_height)}"
        )
    if bpp not in (1, 8, 24, 32):
        raise BitmapError(f"unsupported bit depth {bpp}")

    stride = ((bpp * width + 31) // 32) * 4
    if offset + stride * height > len(payload):
        raise BitmapError("pixel array is truncated")
    rows = np.frombuffer(payload, dtype=np.uint8, count=stride * height, offset=offset)
    rows = rows.reshape(height, stride)
    if bmp_height > 0:
        rows = rows[::-1]

    if bpp in (24, 32):
        step = bpp // 8
        pixels = rows[:, : width * step].reshape(height, width, step).astype(np.int64)
        blue, green, red = pixels[..., 0], pixels[..., 1], pixels[..., 2]
        return (299 * red + 587 * green + 114 * blue) // 1000

    if bpp == 1:
        indices = np.unpackbits(rows, axis=1)[:, :width]
    else:
        indices = rows[:, :width]
    palette_start = _FILE_HEADER.size + header_size
    entries = colors_used or (1 << bpp)
    palette_end = palette_start + 4 * entries
    if palette_end > offset:
        # no usable palette: treat indices as gray levels
        if bpp == 1:
            return indices.astype(np.int64) * 255
        return indices.astype(np.int64)
    palette = np.frombuffer(payload[palette_start:palette_end], dtype=np.uint8)
    palette = palette.reshape(entries, 4).astype(np.int64)
    gray = (299 * palette[:, 2] + 587 * palette[:, 1] + 114 * palette[:, 0]) // 1000
    return gray[indices.astype(np.int64)]


def decode_bitmap(
    payload: bytes,
    *,
    low: Number = "0.2",
    high: Number = "0.8",
    threshold: int = LUMINANCE_THRESHOLD,
    width: int = WIDTH,
    height: int = HEIGHT,
) -> List[Decimal]:
    """Decode ``payload`` into ``width * height`` two-level decimal inputs."""

    lo, hi = to_decimal(low), to_decimal(high)
    luminance = _luminance(payload, width=width, height=height)
    return [lo if value < threshold else hi for value in luminance.reshape(-1).tolist()]


def read_bitmap(path: str | Path, **kwargs) -> List[Decimal]:
    return decode_bitmap(Path(path).read_bytes(), **kwargs)


def encode_bitmap(rows: Sequence[Sequence[int]]) -> bytes:
    """Encode gray levels (top row first) as an 8-bit grayscale bitmap."""

    height = len(rows)
    width = len(rows[0]) if rows else 0
    if any(len(row) != width for row in rows):
        raise BitmapError("all rows must have the same width")
    stride = ((8 * width + 31) // 32) * 4
    palette = b"".join(bytes((v, v, v, 0)) for v in range(256))
    offset = _FILE_HEADER.size + _INFO_HEADER.size + len(palette)
    pixels = bytearray()
    for row in reversed(rows):
        pixels.extend(bytes(int(v) for v in row))
        pixels.extend(b"\x00" * (stride - width))
    info = _INFO_HEADER.pack(
        _INFO_HEADER.size, width, height, 1, 8, 0, len(pixels), 2835, 2835, 256, 0
    )
    header = _FILE_HEADER.pack(b"BM", offset + len(pixels), 0, 0, offset)
    return header + info + palette + bytes(pixels)


def glyph_levels(label: int, flip: int | None = None) -> List[List[int]]:
    """Gray levels of the built-in glyph for ``label`` with one optional flipped pixel."""

    rows = [[255 if ch == "#" else 0 for ch in line] for line in GLYPHS[label]]
    if flip is not None:
        r, c = divmod(int(flip), WIDTH)
        rows[r][c] = 255 - rows[r][c]
    return rows


def glyph_variants(label: int, count: int, seed: int = 0) -> Iterator[List[List[int]]]:
    """Yield the base glyph followed by ``count`` single-pixel variants."""

    yield glyph_levels(label)
    rng = np.random.default_rng(seed + label)
    for flip in rng.choice(PIXELS, size=min(count, PIXELS), replace=False).tolist():
        yield glyph_levels(label, flip)


def write_glyph_fixture(directory: str | Path, *, variants: int = 10, seed: int = 0) -> Path:
    """Materialise the built-in glyphs as ``{label}{suffix}.bmp`` files."""

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    for label in range(len(GLYPHS)):
        levels = glyph_variants(label, variants, seed)
        for suffix, rows in zip(SUFFIXES, levels):
            (directory / f"{label}{suffix}.bmp").write_bytes(encode_bitmap(rows))
    return directory


def load_directory(directory: str | Path, **kwargs) -> List[Sample]:
    """Read every ``{label}{suffix}.bmp`` file present in ``directory``."""

    directory = Path(directory)
    samples: List[Sample] = []
    for label in range(10):
        for suffix in SUFFIXES:
            path = directory / f"{label}{suffix}.bmp"
            if path.exists():
                samples.append(Sample.of(read_bitmap(path, **kwargs), (label,)))
    if not samples:
        raise FileNotFoundError(f"no digit bitmaps found in {directory}")
    return samples


def _factory(
    *,
    directory: str | Path | None = None,
    variants: int = 10,
    seed: int = 0,
    low: Number = "0.2",
    high: Number = "0.8",
    threshold: int = LUMINANCE_THRESHOLD,
    control_split: int | None = None,
    **_: object,
) -> SampleSet:
    levels = {"low": low, "high": high, "threshold": threshold}
    if directory is not None:
        samples = load_directory(directory, **levels)
        provenance = {"type": "bitmap", "directory": str(directory)}
    else:
        samples = [
            Sample.of(decode_bitmap(encode_bitmap(rows), **levels), (label,))
            for label in range(len(GLYPHS))
            for rows in glyph_variants(label, variants, seed)
        ]
        provenance = {"type": "glyphs", "variants": variants, "seed": seed}
    training, control = split_control(samples, control_split)
    return SampleSet(
        name="digits",
        training=training,
        control=control,
        d_in=PIXELS,
        d_target=1,
        provenance=provenance,
    )


register_dataset("digits", _factory)

__all__ = [
    "BitmapError",
    "GLYPHS",
    "HEIGHT",
    "SUFFIXES",
    "WIDTH",
    "decode_bitmap",
    "encode_bitmap",
    "glyph_levels",
    "glyph_variants",
    "load_directory",
    "read_bitmap",
    "write_glyph_fixture",
]
