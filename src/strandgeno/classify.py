"""Region state classification from Watson/Crick read counts.

Two interchangeable genotypers are provided:

- ``fisher``: Fisher exact tests of the observed (Crick, Watson) split against
  expected WW, CC and WC splits; the state with the smallest p-value wins.
- ``binom``: binomial probability of the observed Watson count under the WW,
  CC and WC success probabilities; the most likely state wins.

Both return a no call (``StateCall(None, None)``) when the region holds fewer
than ``min_reads`` reads.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from functools import partial
from typing import Callable, Dict, Optional

from scipy.stats import binom, fisher_exact

from .models import Region, StateCall

logger = logging.getLogger(__name__)

STATES = ("wc", "cc", "ww")  # tie-break order
GENOTYPE_METHODS = ("fisher", "binom")

NO_CALL = StateCall(label=None, score=None)

RegionGenotyper = Callable[[Region], StateCall]


def _missing(x: Optional[float]) -> bool:
    if x is None:
        return True
    try:
        return math.isnan(float(x))
    except (TypeError, ValueError):
        return True


def _best(values: Dict[str, float], *, lowest: bool) -> StateCall:
    pick = min if lowest else max
    label = pick(STATES, key=lambda s: values[s])
    return StateCall(label=label, score=float(values[label]))


def genotype_fisher(
    c_reads: Optional[int],
    w_reads: Optional[int],
    roi_reads: Optional[int],
    *,
    background: float = 0.05,
    min_reads: int = 10,
) -> StateCall:
    """Assign a state to a region with Fisher exact tests.

    The observed (Crick, Watson) counts are compared against three reference
    splits of ``roi_reads``: mostly Crick (CC, one-sided), half/half (WC,
    two-sided, reported as ``1 - p``) and mostly Watson (WW, one-sided).

    Returns
    -------
    StateCall
        Label with the minimum p-value and that p-value, or a no call.
    """
    if _missing(roi_reads) or _missing(c_reads) or _missing(w_reads):
        return NO_CALL
    n = int(roi_reads)
    if n < min_reads:
        return NO_CALL
    c = int(c_reads)
    w = int(w_reads)

    # Expected splits use round-half-to-even.
    major = int(round(n * (1 - background)))
    minor = int(round(n * background))
    half = int(round(n * 0.5))

    _, cc_pval = fisher_exact([[c, w], [major, minor]], alternative="greater")
    _, wc_pval = fisher_exact([[c, w], [half, half]], alternative="two-sided")
    _, ww_pval = fisher_exact([[w, c], [major, minor]], alternative="greater")

    values = {"wc": 1.0 - float(wc_pval), "cc": float(cc_pval), "ww": float(ww_pval)}
    return _best(values, lowest=True)


def genotype_binom(
    w_reads: Optional[int],
    c_reads: Optional[int],
    *,
    background: float = 0.05,
    min_reads: int = 10,
    log: bool = False,
) -> StateCall:
    """Assign a state to a region from binomial probabilities.

    Watson reads are successes out of ``w_reads + c_reads`` trials, evaluated
    under ``1 - background`` (WW), ``background`` (CC) and ``0.5`` (WC). Both
    the WW and CC hypotheses score ``w_reads``.

    log:
        Report log probabilities instead of probabilities. The state is
        always chosen in log space, where large regions do not underflow.
    """
    if _missing(w_reads) or _missing(c_reads):
        return NO_CALL
    w = int(w_reads)
    n = w + int(c_reads)
    if n < min_reads:
        return NO_CALL

    values = {
        "wc": float(binom.logpmf(w, n, 0.5)),
        "cc": float(binom.logpmf(w, n, background)),
        "ww": float(binom.logpmf(w, n, 1 - background)),
    }
    call = _best(values, lowest=False)
    if log:
        return call
    return StateCall(label=call.label, score=math.exp(call.score))


def _fisher_region(region: Region, *, background: float, min_reads: int) -> StateCall:
    return genotype_fisher(
        region.c_count,
        region.w_count,
        region.read_count,
        background=background,
        min_reads=min_reads,
    )


def _binom_region(region: Region, *, background: float, min_reads: int, log: bool) -> StateCall:
    return genotype_binom(
        region.w_count,
        region.c_count,
        background=background,
        min_reads=min_reads,
        log=log,
    )


def get_genotyper(
    geno_t: str,
    *,
    background: float = 0.05,
    min_reads: int = 10,
    log: bool = False,
) -> RegionGenotyper:
    """Return a region classifier for method ``geno_t`` ('fisher' or 'binom')."""
    if geno_t == "fisher":
        return partial(_fisher_region, background=background, min_reads=min_reads)
    if geno_t == "binom":
        return partial(_binom_region, background=background, min_reads=min_reads, log=log)
    raise ValueError(f"Wrong argument geno_t='{geno_t}'; expected one of {list(GENOTYPE_METHODS)}")


def classify_region(region: Region, genotyper: RegionGenotyper) -> Region:
    """Return a copy of ``region`` carrying its state call."""
    call = genotyper(region)
    return replace(region, state=call.label, score=call.score)
