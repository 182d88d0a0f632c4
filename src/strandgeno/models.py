from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Fragment:
    """An aligned Strand-seq read fragment.

    Coordinates are 0-based half-open in internal representation.

    Attributes
    ----------
    chrom:
        Contig name.
    start0, end0:
        Fragment span, ``end0 > start0``.
    strand:
        ``'-'`` for Watson reads, ``'+'`` for Crick reads.
    """

    chrom: str
    start0: int
    end0: int
    strand: str


@dataclass(frozen=True)
class Breakpoint:
    """A nominated strand-state breakpoint.

    Attributes
    ----------
    chrom:
        Contig name.
    start0, end0:
        Breakpoint locus (a position or a narrow interval).
    delta_w:
        Magnitude of the directional read-orientation change that nominated
        this locus.
    """

    chrom: str
    start0: int
    end0: int
    delta_w: float


@dataclass(frozen=True)
class Region:
    """Interval between two consecutive breakpoints (or a chromosome end)."""

    chrom: str
    start0: int
    end0: int
    w_count: int
    c_count: int
    state: Optional[str] = None  # 'ww', 'cc', 'wc' or None (no call)
    score: Optional[float] = None

    @property
    def read_count(self) -> int:
        return self.w_count + self.c_count


@dataclass(frozen=True)
class StateCall:
    """Best-fit state of a region with its test statistic; both None for a no call."""

    label: Optional[str]
    score: Optional[float]

    @property
    def is_call(self) -> bool:
        return self.label is not None


@dataclass(frozen=True)
class GenotypedBreakpoint:
    """Breakpoint separating two differently classified regions.

    ``genotype`` is the ordered state transition, e.g. ``'ww-wc'``. ``delta_w``
    is None until the breakpoint has been refined against the input calls.
    """

    chrom: str
    start0: int
    end0: int
    genotype: str
    delta_w: Optional[float] = None

    @property
    def states(self) -> Tuple[str, str]:
        parts = self.genotype.split("-")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Malformed breakpoint genotype: '{self.genotype}'")
        return parts[0], parts[1]

    @property
    def left_state(self) -> str:
        return self.states[0]

    @property
    def right_state(self) -> str:
        return self.states[1]


@dataclass(frozen=True)
class ConfidenceInterval:
    chrom: str
    start0: int
    end0: int
