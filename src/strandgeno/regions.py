from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .intervals import FragmentIndex, gaps
from .models import Breakpoint, Region

logger = logging.getLogger(__name__)


def chromosome_span(
    breaks: Sequence[Breakpoint],
    index: Optional[FragmentIndex],
    chrom_length: Optional[int] = None,
) -> int:
    """End coordinate of the chromosome used for the terminal region."""
    if chrom_length is not None:
        return int(chrom_length)
    span = max((b.end0 for b in breaks), default=0)
    if index is not None:
        span = max(span, index.span_end)
    return span


def count_regions(
    chrom: str,
    breaks: Sequence[Breakpoint],
    index: Optional[FragmentIndex],
    *,
    chrom_length: Optional[int] = None,
) -> List[Region]:
    """Derive the regions between breakpoints of one chromosome and count reads per strand.

    Regions are the gaps left by the (sorted, unioned) breakpoint intervals over
    ``[0, chrom_length)``, including both chromosome-end regions. Watson ('-')
    and Crick ('+') fragments overlapping each region are counted separately.

    Parameters
    ----------
    chrom:
        Contig name; all ``breaks`` must lie on it.
    breaks:
        Breakpoints of ``chrom`` in any order.
    index:
        Fragment index of ``chrom``, or None if the chromosome has no fragments.
    chrom_length:
        Chromosome length. If None, the furthest fragment or breakpoint end is used.

    Returns
    -------
    list of Region
        Position-ordered, unclassified regions.
    """
    if not breaks and (index is None or len(index) == 0):
        return []

    span = chromosome_span(breaks, index, chrom_length)
    intervals = gaps(((b.start0, b.end0) for b in breaks), 0, span)
    if not intervals:
        return []

    starts0 = [s for s, _ in intervals]
    ends0 = [e for _, e in intervals]
    if index is None:
        logger.warning("No fragments on %s; all %d regions have zero reads.", chrom, len(intervals))
        w_counts = [0] * len(intervals)
        c_counts = [0] * len(intervals)
    else:
        w_arr, c_arr = index.count_strands(starts0, ends0)
        w_counts = [int(x) for x in w_arr]
        c_counts = [int(x) for x in c_arr]

    return [
        Region(chrom=chrom, start0=s, end0=e, w_count=w, c_count=c)
        for s, e, w, c in zip(starts0, ends0, w_counts, c_counts)
    ]
