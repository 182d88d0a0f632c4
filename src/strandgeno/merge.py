from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from .intervals import find_overlaps
from .models import Breakpoint, GenotypedBreakpoint, Region

logger = logging.getLogger(__name__)


def merge_regions(regions: Sequence[Region]) -> List[GenotypedBreakpoint]:
    """Collapse consecutive regions sharing a state into state-transition breakpoints.

    ``regions`` must be position-ordered, classified and free of no calls. A
    breakpoint is emitted between each pair of neighbours with different
    states; it spans from the end of the left region to the start of the right
    one and is labelled ``'<left>-<right>'``. Read counts are not carried over.
    """
    out: List[GenotypedBreakpoint] = []
    for left, right in zip(regions, regions[1:]):
        if left.state is None or right.state is None:
            raise ValueError(
                f"Unclassified region {left.chrom}:{left.start0}-{left.end0} passed to merge_regions"
            )
        if left.state == right.state:
            continue
        out.append(
            GenotypedBreakpoint(
                chrom=left.chrom,
                start0=left.end0,
                end0=right.start0,
                genotype=f"{left.state}-{right.state}",
            )
        )
    return out


def _refine_one(merged: GenotypedBreakpoint, hits: Sequence[Breakpoint]) -> GenotypedBreakpoint:
    max_delta_w = max(b.delta_w for b in hits)
    top = [b for b in hits if b.delta_w == max_delta_w]
    return GenotypedBreakpoint(
        chrom=merged.chrom,
        start0=min(b.start0 for b in top),
        end0=max(b.end0 for b in top),
        genotype=merged.genotype,
        delta_w=float(max_delta_w),
    )


def refine_breaks(
    merged: Sequence[GenotypedBreakpoint], breaks: Sequence[Breakpoint]
) -> List[GenotypedBreakpoint]:
    """Move each merged breakpoint onto the input breakpoint(s) with the highest deltaW.

    Input breakpoints overlapping a merged interval are candidates; ties on the
    maximal deltaW are unioned into one spanning interval. Merged breakpoints
    without any overlapping input breakpoint are dropped.
    """
    by_chrom: Dict[str, List[Breakpoint]] = {}
    for b in breaks:
        by_chrom.setdefault(b.chrom, []).append(b)
    subjects = {chrom: [(b.start0, b.end0) for b in lst] for chrom, lst in by_chrom.items()}

    refined: List[GenotypedBreakpoint] = []
    for m in merged:
        candidates = by_chrom.get(m.chrom, [])
        hit_idx = find_overlaps([(m.start0, m.end0)], subjects.get(m.chrom, []))[0]
        if not hit_idx:
            logger.warning(
                "No input breakpoint overlaps merged breakpoint %s:%d-%d (%s); dropping it.",
                m.chrom,
                m.start0,
                m.end0,
                m.genotype,
            )
            continue
        refined.append(_refine_one(m, [candidates[i] for i in hit_idx]))
    return refined
