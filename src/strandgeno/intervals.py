"""Interval algebra on sorted arrays.

Overlap counting and lookups use binary search (``numpy.searchsorted`` and
``bisect``) over per-contig sorted coordinate arrays. All intervals are
0-based half-open; two intervals overlap when ``a.start0 < b.end0`` and
``a.end0 > b.start0``.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple, Union

import numpy as np

from .models import Fragment

logger = logging.getLogger(__name__)

WATSON = "-"
CRICK = "+"
_STRANDS = {WATSON, CRICK}


@dataclass(frozen=True)
class StrandTrack:
    """Fragment starts and ends of one strand, each sorted independently."""

    starts: np.ndarray
    ends: np.ndarray

    def count_overlaps(self, starts0: np.ndarray, ends0: np.ndarray) -> np.ndarray:
        """Number of fragments overlapping each query interval.

        Fragments starting at or after the query end and fragments ending at or
        before the query start are disjoint sets, so the overlap count is a
        difference of two rank lookups.
        """
        starts0 = np.asarray(starts0, dtype=np.int64)
        ends0 = np.asarray(ends0, dtype=np.int64)
        n_before_end = np.searchsorted(self.starts, ends0, side="left")
        n_ended = np.searchsorted(self.ends, starts0, side="right")
        return (n_before_end - n_ended).astype(np.int64)


@dataclass(frozen=True)
class FragmentIndex:
    """Per-contig fragment lookup structure."""

    starts: np.ndarray  # sorted 0-based starts
    ends: np.ndarray  # aligned with starts
    is_crick: np.ndarray  # aligned with starts
    watson: StrandTrack
    crick: StrandTrack

    def __len__(self) -> int:
        return int(self.starts.shape[0])

    @property
    def span_end(self) -> int:
        if len(self) == 0:
            return 0
        return int(self.ends.max())

    def count_strands(
        self, starts0: Sequence[int], ends0: Sequence[int]
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Return (watson_counts, crick_counts) for the query intervals."""
        return (
            self.watson.count_overlaps(np.asarray(starts0), np.asarray(ends0)),
            self.crick.count_overlaps(np.asarray(starts0), np.asarray(ends0)),
        )


def _strand_track(starts: np.ndarray, ends: np.ndarray) -> StrandTrack:
    return StrandTrack(starts=np.sort(starts), ends=np.sort(ends))


def build_fragment_index(fragments: Iterable[Fragment]) -> Dict[str, FragmentIndex]:
    """Build a per-contig index for fast strand-aware overlap counting."""
    by_contig: Dict[str, List[Fragment]] = {}
    for f in fragments:
        if f.strand not in _STRANDS:
            raise ValueError(
                f"Fragment {f.chrom}:{f.start0}-{f.end0} has strand '{f.strand}'; expected '+' or '-'."
            )
        if f.end0 <= f.start0:
            raise ValueError(f"Fragment {f.chrom}:{f.start0}-{f.end0} has end <= start.")
        by_contig.setdefault(f.chrom, []).append(f)

    index: Dict[str, FragmentIndex] = {}
    for chrom, lst in by_contig.items():
        lst_sorted = sorted(lst, key=lambda x: (x.start0, x.end0))
        starts = np.fromiter((f.start0 for f in lst_sorted), dtype=np.int64, count=len(lst_sorted))
        ends = np.fromiter((f.end0 for f in lst_sorted), dtype=np.int64, count=len(lst_sorted))
        is_crick = np.fromiter(
            (f.strand == CRICK for f in lst_sorted), dtype=bool, count=len(lst_sorted)
        )
        index[chrom] = FragmentIndex(
            starts=starts,
            ends=ends,
            is_crick=is_crick,
            watson=_strand_track(starts[~is_crick], ends[~is_crick]),
            crick=_strand_track(starts[is_crick], ends[is_crick]),
        )
        logger.debug(
            "Indexed %d fragments on %s (%d Crick)", len(lst_sorted), chrom, int(is_crick.sum())
        )
    return index


FragmentSource = Union[Iterable[Fragment], Mapping[str, FragmentIndex]]


def as_fragment_index(fragments: FragmentSource) -> Dict[str, FragmentIndex]:
    """Accept either raw fragments or a prebuilt per-contig index."""
    if isinstance(fragments, Mapping):
        return dict(fragments)
    return build_fragment_index(fragments)


def reduce_intervals(intervals: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Sort intervals and union overlapping or touching ones."""
    out: List[Tuple[int, int]] = []
    for start0, end0 in sorted(intervals):
        if out and start0 <= out[-1][1]:
            prev_start, prev_end = out[-1]
            out[-1] = (prev_start, max(prev_end, end0))
        else:
            out.append((start0, end0))
    return out


def gaps(
    intervals: Iterable[Tuple[int, int]], start0: int, end0: int
) -> List[Tuple[int, int]]:
    """Complement of ``intervals`` within ``[start0, end0)``.

    Zero-width gaps are not reported.
    """
    out: List[Tuple[int, int]] = []
    cursor = start0
    for s, e in reduce_intervals(intervals):
        if s > cursor:
            out.append((cursor, min(s, end0)))
        cursor = max(cursor, e)
        if cursor >= end0:
            break
    if cursor < end0:
        out.append((cursor, end0))
    return [(s, e) for s, e in out if e > s]


def find_overlaps(
    queries: Sequence[Tuple[int, int]], subjects: Sequence[Tuple[int, int]]
) -> List[List[int]]:
    """For each query interval, indices of overlapping subject intervals.

    Indices refer to positions in ``subjects`` and are returned in
    ascending start order.
    """
    order = sorted(range(len(subjects)), key=lambda i: subjects[i])
    starts = [subjects[i][0] for i in order]
    # Running maximum of ends makes the lower search bound exact for nested intervals.
    max_ends: List[int] = []
    running = None
    for i in order:
        running = subjects[i][1] if running is None else max(running, subjects[i][1])
        max_ends.append(running)

    hits: List[List[int]] = []
    for q_start, q_end in queries:
        lo = bisect.bisect_right(max_ends, q_start)
        hi = bisect.bisect_left(starts, q_end)
        hits.append([order[k] for k in range(lo, hi) if subjects[order[k]][1] > q_start])
    return hits
