import os
import re
from collections import namedtuple

DEFAULT_EXTENSION = "png"

# L<zoom>/R<row hex>/C<col hex>.png
ARCGIS = "arcgis"
# <zoom>/<col>/<row>.png
SLIPPY = "slippy"

HEX_SKIP_CHARS = "LRC"
_DECIMAL_RE = re.compile(r"^[0-9]+$")
_HEX_RE = re.compile(r"^(0[xX])?[0-9a-fA-F]+$")


class TilePathError(ValueError):
    pass


class ArcGISPath(namedtuple("ArcGISPath", ["zoom", "row", "column"])):
    __slots__ = ()
    scheme = ARCGIS


class SlippyPath(namedtuple("SlippyPath", ["zoom", "row", "column"])):
    __slots__ = ()
    scheme = SLIPPY


def has_extension(rel_path, extension=DEFAULT_EXTENSION):
    ext = os.path.splitext(rel_path)[1]
    return ext[1:].lower() == extension.lower().lstrip(".")


def split_segments(rel_path):
    normalized = rel_path.replace(os.sep, "/")
    return [s for s in normalized.split("/") if s]


def scan_decimal_int(text):
    if not _DECIMAL_RE.match(text):
        raise TilePathError(f"not a decimal int: {text!r}")
    return int(text)


def scan_hex_int(text, prefix=HEX_SKIP_CHARS):
    # 앞쪽 접두 문자 하나만 건너뜀 (R0000001a, C000000ff). C는 16진수 숫자이기도 함
    digits = text[1:] if text[:1] and text[0] in prefix else text
    if not _HEX_RE.match(digits):
        raise TilePathError(f"not a hex int: {text!r}")
    return int(digits, 16)


def _parse_arcgis(segments):
    level, row, col = segments
    zoom = scan_decimal_int(level[1:])
    return ArcGISPath(
        zoom=zoom,
        row=scan_hex_int(row, "R"),
        column=scan_hex_int(os.path.splitext(col)[0], "C"),
    )


def _parse_slippy(segments):
    zoom, col, row = segments
    return SlippyPath(
        zoom=scan_decimal_int(zoom),
        row=scan_decimal_int(os.path.splitext(row)[0]),
        column=scan_decimal_int(col),
    )


def parse_tile_path(rel_path, extension=DEFAULT_EXTENSION):
    """
    Parse a path relative to the tile root into an ArcGISPath or SlippyPath.

    Returns None for files that do not carry the image extension; raises
    TilePathError for image files whose name does not encode a tile.
    Both variants expose (zoom, row, column); in the slippy layout the
    column directory comes before the row file name.
    """
    if not has_extension(rel_path, extension):
        return None

    segments = split_segments(rel_path)
    if len(segments) != 3:
        raise TilePathError(f"expected 3 path segments, got {len(segments)}: {rel_path}")

    if segments[0].startswith("L"):
        return _parse_arcgis(segments)
    return _parse_slippy(segments)
