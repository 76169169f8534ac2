"""Reader for R2S reference-line (.r2sr) and lane-boundary (.r2sl) CSV files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence, Union

logger = logging.getLogger(__name__)

_LINE_PATTERN = re.compile(r'(\d+),"?LINESTRING \(([^)]+)\)"?,(.*)')
_LEADING_INT = re.compile(r"\s*[+-]?\d+")

R2SL_MIN_FIELDS = 5
R2SR_MIN_FIELDS = 9

PathLike = Union[str, Path]


@dataclass
class BorderDataR2SL:
    """One lane boundary line of an .r2sl file."""

    id: int = 0
    parent_id: int = 0
    datasource_description_id: int = 0
    material: str = ""
    linetype: str = ""
    x: list[float] = field(default_factory=list)
    y: list[float] = field(default_factory=list)


@dataclass
class BorderDataR2SR:
    """One reference line of an .r2sr file."""

    id: int = 0
    streetname: str = ""
    successor_id: int = 0
    predecessor_id: int = 0
    datasource_description_id: int = 0
    turn: str = ""
    category: str = ""
    oneway: bool = False
    linetype: str = ""
    x: list[float] = field(default_factory=list)
    y: list[float] = field(default_factory=list)


def _split_lines_style(text: str, sep: str = ",") -> list[str]:
    """Split like repeated line reads: no trailing empty piece, nothing for empty text."""
    if not text:
        return []
    parts = text.split(sep)
    if parts[-1] == "":
        parts.pop()
    return parts


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"invalid integer: {text!r}")
    return int(match.group())


def _optional_int(text: str) -> int:
    return 0 if text == "NULL" else _leading_int(text)


def _parse_coordinates(linestring: str) -> tuple[list[float], list[float]]:
    xs: list[float] = []
    ys: list[float] = []
    for pair in _split_lines_style(linestring):
        parts = pair.split()
        if len(parts) < 2:
            raise ValueError(f"invalid coordinate pair: {pair!r}")
        xs.append(float(parts[0]))
        ys.append(float(parts[1]))
    return xs, ys


def split_fields(line: str) -> list[str]:
    """Split a row into id, LINESTRING coordinates and the remaining fields.

    Returns an empty list when the row does not have the expected shape.
    """
    match = _LINE_PATTERN.fullmatch(line)
    if match is None:
        logger.error("Unrecognized line format: %s", line)
        return []
    remaining = [piece.replace('"', "") for piece in _split_lines_style(match.group(3))]
    return [match.group(1), match.group(2), *remaining]


def parse_border_data_r2sl(fields: Sequence[str]) -> BorderDataR2SL:
    """Build a lane boundary from split fields; raises ValueError on bad data."""
    if len(fields) < R2SL_MIN_FIELDS:
        raise ValueError("too few fields for a lane boundary")
    xs, ys = _parse_coordinates(fields[1])
    return BorderDataR2SL(
        id=_leading_int(fields[0]),
        linetype=fields[-4],
        material=fields[-3],
        datasource_description_id=_optional_int(fields[-2]),
        parent_id=_optional_int(fields[-1]),
        x=xs,
        y=ys,
    )


def parse_border_data_r2sr(fields: Sequence[str]) -> BorderDataR2SR:
    """Build a reference line from split fields; raises ValueError on bad data."""
    if len(fields) < R2SR_MIN_FIELDS:
        raise ValueError("too few fields for a reference line")
    xs, ys = _parse_coordinates(fields[1])
    return BorderDataR2SR(
        id=_leading_int(fields[0]),
        linetype=fields[-8],
        oneway=fields[-7] == "true",
        category=fields[-6],
        turn=fields[-5],
        datasource_description_id=_optional_int(fields[-4]),
        predecessor_id=_optional_int(fields[-3]),
        successor_id=_optional_int(fields[-2]),
        streetname=fields[-1],
        x=xs,
        y=ys,
    )


def _data_rows(path: Path) -> list[list[str]]:
    """Split fields of every row after the header line."""
    with path.open(encoding="utf-8", errors="replace") as handle:
        next(handle, None)
        return [split_fields(line.rstrip("\n").removesuffix("\r")) for line in handle]


def load_border_data_from_r2sl_file(file_name: PathLike) -> list[BorderDataR2SL]:
    """Read the lane boundaries belonging to ``file_name``.

    The last character of the name is replaced by ``l``, so a reference-line
    file name can be passed directly.
    """
    name = str(file_name)
    path = Path(name[:-1] + "l")
    result = []
    for fields in _data_rows(path):
        if len(fields) < R2SL_MIN_FIELDS:
            continue
        try:
            result.append(parse_border_data_r2sl(fields))
        except ValueError as error:
            logger.error("Error parsing BorderDataR2SL: %s", error)
    return result


def load_border_data_from_r2sr_file(file_name: PathLike) -> list[BorderDataR2SR]:
    """Read the reference lines of an .r2sr file."""
    result = []
    for fields in _data_rows(Path(file_name)):
        if len(fields) < R2SR_MIN_FIELDS:
            continue
        try:
            result.append(parse_border_data_r2sr(fields))
        except ValueError as error:
            logger.error("Error parsing BorderDataR2SR: %s", error)
    return result