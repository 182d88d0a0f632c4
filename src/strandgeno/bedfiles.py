"""Plain-text inputs and outputs (BED-like, tab-separated, optionally gzipped).

Input files
-----------
- breakpoints: ``chrom  start  end  deltaW``
- fragments:   ``chrom  start  end  strand`` or BED6 with the strand in column 6
- chrom sizes: ``chrom  length``

Lines starting with ``#``, ``track`` or ``browser`` are skipped. A first data
line whose start column is not an integer is treated as a column header.
Coordinates are BED (0-based half-open).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .models import Breakpoint, ConfidenceInterval, Fragment, GenotypedBreakpoint, Region
from .utils import iter_table_rows, open_textmaybe_gzip

logger = logging.getLogger(__name__)


def _is_header(fields: List[str]) -> bool:
    return len(fields) >= 2 and not fields[1].lstrip("-").isdigit()


def _parse_interval(path: str | Path, lineno: int, fields: List[str], min_cols: int) -> tuple[str, int, int]:
    if len(fields) < min_cols:
        raise ValueError(f"{path}:{lineno}: expected at least {min_cols} columns, got {len(fields)}")
    try:
        start0 = int(fields[1])
        end0 = int(fields[2])
    except ValueError:
        raise ValueError(f"{path}:{lineno}: start/end must be integers") from None
    if end0 <= start0:
        raise ValueError(f"{path}:{lineno}: end ({end0}) must be greater than start ({start0})")
    return fields[0], start0, end0


def read_breakpoints(path: str | Path) -> List[Breakpoint]:
    """Read breakpoint calls with their deltaW scores."""
    out: List[Breakpoint] = []
    for lineno, fields in iter_table_rows(path):
        if not out and _is_header(fields):
            continue
        chrom, start0, end0 = _parse_interval(path, lineno, fields, 4)
        try:
            delta_w = float(fields[3])
        except ValueError:
            raise ValueError(f"{path}:{lineno}: deltaW '{fields[3]}' is not a number") from None
        out.append(Breakpoint(chrom=chrom, start0=start0, end0=end0, delta_w=delta_w))
    logger.info("Read %d breakpoints from %s", len(out), path)
    return out


def read_fragments(path: str | Path) -> List[Fragment]:
    """Read strand-annotated read fragments."""
    out: List[Fragment] = []
    for lineno, fields in iter_table_rows(path):
        if not out and _is_header(fields):
            continue
        chrom, start0, end0 = _parse_interval(path, lineno, fields, 4)
        strand = fields[5] if len(fields) >= 6 else fields[3]
        if strand not in ("+", "-"):
            raise ValueError(f"{path}:{lineno}: strand must be '+' or '-', got '{strand}'")
        out.append(Fragment(chrom=chrom, start0=start0, end0=end0, strand=strand))
    logger.info("Read %d fragments from %s", len(out), path)
    return out


def read_chrom_sizes(path: str | Path) -> Dict[str, int]:
    sizes: Dict[str, int] = {}
    for lineno, fields in iter_table_rows(path):
        if len(fields) < 2:
            raise ValueError(f"{path}:{lineno}: expected 'chrom<TAB>length'")
        try:
            sizes[fields[0]] = int(fields[1])
        except ValueError:
            raise ValueError(f"{path}:{lineno}: length '{fields[1]}' is not an integer") from None
    return sizes


def read_genotyped_breaks(path: str | Path) -> List[GenotypedBreakpoint]:
    """Read a BED written by ``write_genotyped_breaks``."""
    out: List[GenotypedBreakpoint] = []
    for lineno, fields in iter_table_rows(path):
        if not out and _is_header(fields):
            continue
        chrom, start0, end0 = _parse_interval(path, lineno, fields, 4)
        delta_w: Optional[float] = None
        if len(fields) >= 5 and fields[4] not in ("", "."):
            delta_w = float(fields[4])
        out.append(
            GenotypedBreakpoint(chrom=chrom, start0=start0, end0=end0, genotype=fields[3], delta_w=delta_w)
        )
    return out


def _fmt(x: Optional[float]) -> str:
    return "." if x is None else f"{x:.6g}"


def write_genotyped_breaks(path: str | Path, gbreaks: Iterable[GenotypedBreakpoint]) -> Path:
    path = Path(path)
    with open_textmaybe_gzip(path, "wt") as fh:
        fh.write("#chrom\tstart\tend\tgenotype\tdeltaW\n")
        for b in gbreaks:
            fh.write(f"{b.chrom}\t{b.start0}\t{b.end0}\t{b.genotype}\t{_fmt(b.delta_w)}\n")
    return path


def write_confidence_intervals(path: str | Path, intervals: Iterable[ConfidenceInterval]) -> Path:
    path = Path(path)
    with open_textmaybe_gzip(path, "wt") as fh:
        fh.write("#chrom\tstart\tend\n")
        for ci in intervals:
            fh.write(f"{ci.chrom}\t{ci.start0}\t{ci.end0}\n")
    return path


def write_regions(path: str | Path, regions: Iterable[Region]) -> Path:
    """Per-region read counts and state calls (no calls written as '.')."""
    path = Path(path)
    with open_textmaybe_gzip(path, "wt") as fh:
        fh.write(
            "\t".join(["chrom", "start0", "end0", "w_count", "c_count", "read_count", "state", "score"])
            + "\n"
        )
        for r in regions:
            fh.write(
                f"{r.chrom}\t{r.start0}\t{r.end0}\t{r.w_count}\t{r.c_count}\t{r.read_count}\t"
                f"{r.state or '.'}\t{_fmt(r.score)}\n"
            )
    return path
