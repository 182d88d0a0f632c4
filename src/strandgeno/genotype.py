"""Genotype the regions between Strand-seq breakpoints.

Each chromosome is processed independently:

1. derive the regions between its breakpoints and count Watson/Crick reads;
2. classify every region as 'ww', 'cc' or 'wc' (regions below ``min_reads``
   are no calls and are dropped);
3. collapse neighbouring regions with the same state, keeping one breakpoint
   per state change;
4. refine each kept breakpoint to the input breakpoint with the highest deltaW.

Chromosomes share no state, so they can be fanned out to worker processes and
concatenated afterwards.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from tqdm import tqdm

from .classify import classify_region, get_genotyper
from .intervals import FragmentIndex, FragmentSource, as_fragment_index
from .merge import merge_regions, refine_breaks
from .models import Breakpoint, GenotypedBreakpoint, Region
from .regions import count_regions
from .validation import check_breakpoints, check_genotype_params

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenotypingResult:
    """Genotyped breakpoints plus the classified regions they were derived from."""

    breakpoints: List[GenotypedBreakpoint]
    regions: List[Region]
    chromosomes: List[str] = field(default_factory=list)
    runtime_seconds: float = 0.0


def genotype_chromosome(
    chrom: str,
    breaks: List[Breakpoint],
    index: Optional[FragmentIndex],
    *,
    chrom_length: Optional[int] = None,
    background: float = 0.05,
    min_reads: int = 10,
    geno_t: str = "fisher",
    log: bool = False,
) -> Tuple[List[Region], List[GenotypedBreakpoint]]:
    """Run the full genotyping chain on one chromosome.

    Returns the classified regions (no calls included) and the refined
    breakpoints.
    """
    genotyper = get_genotyper(geno_t, background=background, min_reads=min_reads, log=log)
    regions = count_regions(chrom, breaks, index, chrom_length=chrom_length)
    classified = [classify_region(r, genotyper) for r in regions]

    called = [r for r in classified if r.state is not None]
    if len(called) < len(classified):
        logger.debug(
            "%s: %d of %d regions below min_reads=%d (no call)",
            chrom,
            len(classified) - len(called),
            len(classified),
            min_reads,
        )

    merged = merge_regions(called)
    refined = refine_breaks(merged, breaks)
    logger.debug("%s: %d regions -> %d state changes", chrom, len(called), len(refined))
    return classified, refined


def _group_by_chrom(breaks: Iterable[Breakpoint]) -> Dict[str, List[Breakpoint]]:
    by_chrom: Dict[str, List[Breakpoint]] = {}
    for b in breaks:
        by_chrom.setdefault(b.chrom, []).append(b)
    for lst in by_chrom.values():
        lst.sort(key=lambda b: (b.start0, b.end0))
    return by_chrom


def run_genotyping(
    breaks: Iterable[Breakpoint],
    fragments: FragmentSource,
    *,
    background: float = 0.05,
    min_reads: int = 10,
    geno_t: str = "fisher",
    log: bool = False,
    chrom_lengths: Optional[Mapping[str, int]] = None,
    threads: int = 1,
    progress: bool = False,
) -> GenotypingResult:
    """Genotype breakpoint-defined regions on every chromosome with breakpoints.

    Parameters
    ----------
    breaks:
        Input breakpoints (any chromosome order). Must not be empty.
    fragments:
        Read fragments, or a prebuilt index from ``build_fragment_index``.
    background:
        Fraction of reads from the wrong strand tolerated in WW/CC regions.
    min_reads:
        Minimal number of reads in a region for it to be genotyped.
    geno_t:
        Genotyping method, 'fisher' or 'binom'.
    log:
        Report binomial scores in log space ('binom' only).
    chrom_lengths:
        Optional chromosome lengths; the furthest read or breakpoint end is used otherwise.
    threads:
        Number of worker processes; chromosomes are distributed across them.
    progress:
        Show a per-chromosome progress bar.
    """
    t0 = time.time()
    breaks = list(breaks)
    check_breakpoints(breaks)
    check_genotype_params(background=background, min_reads=min_reads, geno_t=geno_t)

    index = as_fragment_index(fragments)
    by_chrom = _group_by_chrom(breaks)
    lengths = dict(chrom_lengths or {})

    missing = [c for c in by_chrom if c not in index]
    if missing:
        logger.warning("No fragments on %d chromosome(s) with breakpoints: %s", len(missing), ", ".join(missing))

    kwargs = dict(background=background, min_reads=min_reads, geno_t=geno_t, log=log)
    results: Dict[str, Tuple[List[Region], List[GenotypedBreakpoint]]] = {}

    if threads <= 1 or len(by_chrom) <= 1:
        it: Iterable[str] = by_chrom
        if progress:
            it = tqdm(it, unit="chrom", desc="Genotyping")
        for chrom in it:
            results[chrom] = genotype_chromosome(
                chrom,
                by_chrom[chrom],
                index.get(chrom),
                chrom_length=lengths.get(chrom),
                **kwargs,
            )
    else:
        with ProcessPoolExecutor(max_workers=threads) as pool:
            futures = {
                pool.submit(
                    genotype_chromosome,
                    chrom,
                    chrom_breaks,
                    index.get(chrom),
                    chrom_length=lengths.get(chrom),
                    **kwargs,
                ): chrom
                for chrom, chrom_breaks in by_chrom.items()
            }
            done = as_completed(futures)
            if progress:
                done = tqdm(done, total=len(futures), unit="chrom", desc="Genotyping")
            for fut in done:
                results[futures[fut]] = fut.result()

    regions: List[Region] = []
    gbreaks: List[GenotypedBreakpoint] = []
    for chrom in by_chrom:
        chrom_regions, chrom_breaks = results[chrom]
        regions.extend(chrom_regions)
        gbreaks.extend(chrom_breaks)

    dt = time.time() - t0
    logger.info(
        "Genotyped %d regions on %d chromosome(s): %d breakpoint(s) with a state change (%.2fs)",
        len(regions),
        len(by_chrom),
        len(gbreaks),
        dt,
    )
    return GenotypingResult(
        breakpoints=gbreaks,
        regions=regions,
        chromosomes=list(by_chrom),
        runtime_seconds=float(dt),
    )


def genotype_breaks(
    breaks: Iterable[Breakpoint],
    fragments: FragmentSource,
    *,
    background: float = 0.05,
    min_reads: int = 10,
    geno_t: str = "fisher",
    log: bool = False,
    chrom_lengths: Optional[Mapping[str, int]] = None,
    threads: int = 1,
    progress: bool = False,
) -> List[GenotypedBreakpoint]:
    """Genotyped breakpoints only; an empty list if no chromosome has a state change.

    See ``run_genotyping`` for the parameters.
    """
    return run_genotyping(
        breaks,
        fragments,
        background=background,
        min_reads=min_reads,
        geno_t=geno_t,
        log=log,
        chrom_lengths=chrom_lengths,
        threads=threads,
        progress=progress,
    ).breakpoints
