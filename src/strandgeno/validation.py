from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Sequence

from .classify import GENOTYPE_METHODS
from .models import Breakpoint, Fragment

logger = logging.getLogger(__name__)


_UCSC_PREFIX = "chr"


def check_background(background: float) -> None:
    if not (0.0 <= float(background) <= 1.0):
        raise ValueError(f"background must be within [0, 1], got {background}")


def check_genotype_params(*, background: float, min_reads: int, geno_t: str) -> None:
    """Validate genotyping parameters; raise ValueError naming the bad one."""
    if geno_t not in GENOTYPE_METHODS:
        raise ValueError(f"Wrong argument geno_t='{geno_t}'; expected one of {list(GENOTYPE_METHODS)}")
    check_background(background)
    if int(min_reads) < 0:
        raise ValueError(f"min_reads must be >= 0, got {min_reads}")


def check_confidence_params(*, background: float, conf: float) -> None:
    check_background(background)
    if not (0.0 < float(conf) < 1.0):
        raise ValueError(f"conf must be within (0, 1), got {conf}")


def check_breakpoints(breaks: Sequence[Breakpoint]) -> None:
    """Ensure breakpoints are non-empty, well-formed intervals with a finite deltaW."""
    if len(breaks) == 0:
        raise ValueError("argument 'breaks' is empty")
    for b in breaks:
        if b.end0 <= b.start0:
            raise ValueError(f"Breakpoint {b.chrom}:{b.start0}-{b.end0} has end <= start.")
        if b.delta_w is None or math.isnan(float(b.delta_w)):
            raise ValueError(f"Breakpoint {b.chrom}:{b.start0}-{b.end0} has no deltaW.")


def detect_contig_style(contigs: Iterable[str]) -> str:
    """Infer contig style: 'ucsc' if most contigs start with 'chr', else 'ensembl'."""
    names = [c for c in contigs if c]
    if not names:
        return "unknown"
    chr_like = [c for c in names if c.startswith(_UCSC_PREFIX)]
    if len(chr_like) >= max(1, int(0.5 * len(names))):
        return "ucsc"
    return "ensembl"


def remap_contig(contig: str, style: str) -> str:
    """Remap a contig name to the requested style (ucsc or ensembl)."""
    if style == "ucsc":
        if contig.startswith(_UCSC_PREFIX):
            return contig
        if contig == "MT":
            return "chrM"
        return f"{_UCSC_PREFIX}{contig}"
    if style == "ensembl":
        if contig.startswith(_UCSC_PREFIX):
            core = contig[len(_UCSC_PREFIX) :]
            if core == "M":
                return "MT"
            return core
        return contig
    return contig


def reconcile_contigs(
    breaks: List[Breakpoint],
    fragments: List[Fragment],
    requested: str = "auto",
) -> List[Breakpoint]:
    """Rename breakpoint contigs to match the fragments' naming style.

    requested:
        'ucsc', 'ensembl' or 'auto' (follow the fragments).
    """
    break_style = detect_contig_style({b.chrom for b in breaks})
    frag_style = detect_contig_style({f.chrom for f in fragments})

    target_style = requested
    if requested == "auto":
        target_style = frag_style if frag_style != "unknown" else break_style

    if break_style != target_style:
        logger.warning(
            "Contig style mismatch detected (breakpoints=%s, fragments=%s). Remapping breakpoints to %s style.",
            break_style,
            frag_style,
            target_style,
        )
        breaks = [replace(b, chrom=remap_contig(b.chrom, target_style)) for b in breaks]

    overlap = {b.chrom for b in breaks}.intersection({f.chrom for f in fragments})
    if not overlap:
        raise ValueError(
            "Contig mismatch between breakpoints and fragments (e.g., chr1 vs 1). "
            "Use --contig-style {ucsc,ensembl,auto} to override."
        )
    return breaks


def reconcile_chrom_sizes(chrom_lengths: Mapping[str, int], breaks: Sequence[Breakpoint]) -> Dict[str, int]:
    """Rename chrom.sizes keys to the breakpoints' contig style."""
    target_style = detect_contig_style({b.chrom for b in breaks})
    sizes_style = detect_contig_style(chrom_lengths)
    lengths = dict(chrom_lengths)
    if target_style != "unknown" and sizes_style != target_style:
        logger.warning("Remapping chrom.sizes contigs from %s to %s style.", sizes_style, target_style)
        lengths = {remap_contig(c, target_style): n for c, n in chrom_lengths.items()}

    missing = sorted({b.chrom for b in breaks}.difference(lengths))
    if missing:
        logger.warning(
            "No chrom.sizes entry for %d chromosome(s) (%s); their ends are taken from the data.",
            len(missing),
            ", ".join(missing[:5]),
        )
    return lengths
