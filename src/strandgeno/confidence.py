"""Confidence intervals around genotyped breakpoints.

Starting at a breakpoint, each flank is grown one read at a time, nearest
read first. For a window of ``k`` reads holding ``x`` reads of the strand that
is enriched on the *other* side of the breakpoint, the null hypothesis "the
window belongs to the other side" is tested with the binomial probability of
observing ``x`` or fewer such reads. The flank stops growing at the first
window rejecting the null at level ``1 - conf``; the breakpoint cannot lie
beyond that point with the requested confidence. Flanks never extend past the
neighbouring genotyped breakpoints.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from scipy.stats import binom

from .intervals import FragmentIndex, FragmentSource, as_fragment_index
from .models import ConfidenceInterval, GenotypedBreakpoint
from .validation import check_confidence_params

logger = logging.getLogger(__name__)


def crick_fraction(state: str, background: float) -> float:
    """Expected fraction of Crick ('+') reads in a region of the given state."""
    if state == "ww":
        return background
    if state == "cc":
        return 1.0 - background
    if state == "wc":
        return 0.5
    raise ValueError(f"Unknown state '{state}'; expected 'ww', 'cc' or 'wc'")


def informative_strand(own: str, far: str, background: float) -> Tuple[bool, float]:
    """Strand separating ``far`` from ``own`` and its expected fraction under ``far``.

    Returns
    -------
    (is_crick, p_far)
        ``is_crick`` is True when Crick reads are enriched under ``far``.
    """
    own_c = crick_fraction(own, background)
    far_c = crick_fraction(far, background)
    if far_c == own_c:
        raise ValueError(
            f"States '{own}' and '{far}' cannot be told apart at background={background}"
        )
    if far_c > own_c:
        return True, far_c
    return False, 1.0 - far_c


def window_size(is_informative: np.ndarray, p_far: float, alpha: float) -> int:
    """Number of nearest reads needed to reject the far-side state at level ``alpha``.

    ``is_informative`` is ordered nearest read first. The whole flank is used
    when no window rejects the null.
    """
    n = int(is_informative.shape[0])
    if n == 0:
        return 0
    x = np.cumsum(is_informative.astype(np.int64))
    k = np.arange(1, n + 1)
    pvals = binom.cdf(x, k, p_far)
    hits = np.flatnonzero(pvals < alpha)
    if hits.size == 0:
        return n
    return int(hits[0]) + 1


def _neighbour_limits(gbreaks: List[GenotypedBreakpoint]) -> Dict[int, Tuple[int, Optional[int]]]:
    """Per input position: (left limit, right limit) set by the adjacent breakpoints."""
    by_chrom: Dict[str, List[int]] = {}
    for i, bp in enumerate(gbreaks):
        by_chrom.setdefault(bp.chrom, []).append(i)

    limits: Dict[int, Tuple[int, Optional[int]]] = {}
    for positions in by_chrom.values():
        positions.sort(key=lambda i: (gbreaks[i].start0, gbreaks[i].end0))
        for j, i in enumerate(positions):
            left = gbreaks[positions[j - 1]].end0 if j > 0 else 0
            right = gbreaks[positions[j + 1]].start0 if j + 1 < len(positions) else None
            limits[i] = (left, right)
    return limits


def _left_bound(
    bp: GenotypedBreakpoint, index: FragmentIndex, limit: int, background: float, alpha: float
) -> int:
    is_crick, p_far = informative_strand(bp.left_state, bp.right_state, background)
    lo = int(np.searchsorted(index.starts, limit, side="left"))
    hi = int(np.searchsorted(index.starts, bp.start0, side="left"))
    idx = np.arange(lo, hi)[::-1]  # nearest first
    strands = index.is_crick[idx]
    k = window_size(strands if is_crick else ~strands, p_far, alpha)
    if k == 0:
        return bp.start0
    return min(bp.start0, int(index.starts[idx[k - 1]]))


def _right_bound(
    bp: GenotypedBreakpoint,
    index: FragmentIndex,
    limit: Optional[int],
    background: float,
    alpha: float,
) -> int:
    is_crick, p_far = informative_strand(bp.right_state, bp.left_state, background)
    mask = index.ends > bp.end0
    if limit is not None:
        mask &= index.ends <= limit
    idx = np.flatnonzero(mask)
    idx = idx[np.argsort(index.ends[idx], kind="stable")]  # nearest first
    strands = index.is_crick[idx]
    k = window_size(strands if is_crick else ~strands, p_far, alpha)
    if k == 0:
        return bp.end0
    return max(bp.end0, int(index.ends[idx[k - 1]]))


def confidence_intervals(
    gbreaks: Iterable[GenotypedBreakpoint],
    fragments: FragmentSource,
    *,
    background: float = 0.02,
    conf: float = 0.99,
) -> List[ConfidenceInterval]:
    """Estimate a confidence interval around every genotyped breakpoint.

    Parameters
    ----------
    gbreaks:
        Genotyped breakpoints, e.g. from ``genotype_breaks``.
    fragments:
        Read fragments, or a prebuilt index from ``build_fragment_index``.
    background:
        Fraction of wrong-strand reads expected in WW/CC regions.
    conf:
        Desired confidence level in (0, 1).

    Returns
    -------
    list of ConfidenceInterval
        One interval per input breakpoint, in input order.
    """
    check_confidence_params(background=background, conf=conf)
    gbreaks = list(gbreaks)
    index = as_fragment_index(fragments)
    limits = _neighbour_limits(gbreaks)
    alpha = 1.0 - conf

    out: List[ConfidenceInterval] = []
    for i, bp in enumerate(gbreaks):
        chrom_index = index.get(bp.chrom)
        if chrom_index is None:
            logger.warning(
                "No fragments on %s; confidence interval of %s:%d-%d is the breakpoint itself.",
                bp.chrom,
                bp.chrom,
                bp.start0,
                bp.end0,
            )
            out.append(ConfidenceInterval(chrom=bp.chrom, start0=bp.start0, end0=bp.end0))
            continue

        left_limit, right_limit = limits[i]
        start0 = _left_bound(bp, chrom_index, left_limit, background, alpha)
        end0 = _right_bound(bp, chrom_index, right_limit, background, alpha)
        logger.debug(
            "%s:%d-%d (%s) -> CI %d-%d", bp.chrom, bp.start0, bp.end0, bp.genotype, start0, end0
        )
        out.append(ConfidenceInterval(chrom=bp.chrom, start0=start0, end0=end0))
    return out
