from __future__ import annotations

import random
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from .confidence import crick_fraction
from .models import Breakpoint, Fragment
from .utils import ensure_outdir, open_textmaybe_gzip, write_json

# (chrom, start0, end0, state)
Segment = Tuple[str, int, int, str]

_TOY_SEGMENTS: List[Segment] = [
    ("chr1", 0, 600_000, "ww"),
    ("chr1", 600_000, 1_200_000, "wc"),
    ("chr1", 1_200_000, 2_000_000, "cc"),
    ("chr2", 0, 1_000_000, "wc"),
]

# One true breakpoint per state change, a weaker call next to the second one,
# and a spurious call inside the uniform chr2.
_TOY_BREAKS: List[Breakpoint] = [
    Breakpoint("chr1", 599_000, 601_000, 40.0),
    Breakpoint("chr1", 1_199_000, 1_201_000, 35.0),
    Breakpoint("chr1", 1_204_000, 1_206_000, 12.0),
    Breakpoint("chr2", 499_000, 501_000, 5.0),
]


def simulate_fragments(
    segments: Sequence[Segment],
    *,
    reads_per_100kb: int = 30,
    background: float = 0.02,
    read_len: int = 100,
    seed: int = 7,
) -> List[Fragment]:
    """Draw uniformly placed reads whose strand follows each segment's state."""
    rng = random.Random(seed)
    out: List[Fragment] = []
    for chrom, start0, end0, state in segments:
        p_crick = crick_fraction(state, background)
        n_reads = max(1, (end0 - start0) * reads_per_100kb // 100_000)
        for _ in range(n_reads):
            s = rng.randrange(start0, max(start0 + 1, end0 - read_len))
            strand = "+" if rng.random() < p_crick else "-"
            out.append(Fragment(chrom=chrom, start0=s, end0=min(end0, s + read_len), strand=strand))
    out.sort(key=lambda f: (f.chrom, f.start0))
    return out


def make_toy_data(*, outdir: str | Path, seed: int = 7) -> Dict[str, str]:
    """Create a tiny single-cell Strand-seq dataset suitable for quick demos/tests.

    The outputs include:
    - breaks.bed (breakpoint calls with deltaW)
    - fragments.bed.gz (BED6 read fragments)
    - chrom.sizes

    chr1 is WW, then WC, then CC; chr2 is WC throughout.

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)

    sizes: Dict[str, int] = {}
    for chrom, _, end0, _ in _TOY_SEGMENTS:
        sizes[chrom] = max(sizes.get(chrom, 0), end0)

    sizes_path = outdir_p / "chrom.sizes"
    sizes_path.write_text("".join(f"{c}\t{n}\n" for c, n in sizes.items()), encoding="utf-8")

    breaks_path = outdir_p / "breaks.bed"
    with open(breaks_path, "wt", encoding="utf-8") as fh:
        fh.write("#chrom\tstart\tend\tdeltaW\n")
        for b in _TOY_BREAKS:
            fh.write(f"{b.chrom}\t{b.start0}\t{b.end0}\t{b.delta_w}\n")

    fragments = simulate_fragments(_TOY_SEGMENTS, seed=seed)
    fragments_path = outdir_p / "fragments.bed.gz"
    with open_textmaybe_gzip(fragments_path, "wt") as fh:
        for i, f in enumerate(fragments):
            fh.write(f"{f.chrom}\t{f.start0}\t{f.end0}\tread{i}\t60\t{f.strand}\n")

    summary = {
        "breaks_bed": str(breaks_path),
        "fragments_bed": str(fragments_path),
        "chrom_sizes": str(sizes_path),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
