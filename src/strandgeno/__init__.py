"""strandgeno: state genotyping of Strand-seq breakpoints.

Regions between breakpoint calls are classified as WW, CC or WC from their
Watson/Crick read counts, neighbouring regions with equal states are merged,
and each remaining breakpoint is refined to the strongest deltaW call inside it.
Most users should use the CLI:

    strandgeno genotype --breaks ... --fragments ... --outdir ...

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
