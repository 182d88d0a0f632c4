import pytest

from strandgeno.merge import merge_regions, refine_breaks
from strandgeno.models import Breakpoint, GenotypedBreakpoint, Region


def _region(start0: int, end0: int, state: str) -> Region:
    return Region("chr1", start0, end0, w_count=10, c_count=10, state=state, score=0.1)


def test_merge_emits_one_breakpoint_per_state_change():
    regions = [
        _region(0, 100, "ww"),
        _region(110, 200, "ww"),
        _region(210, 300, "wc"),
        _region(310, 400, "cc"),
        _region(410, 500, "cc"),
        _region(510, 600, "ww"),
    ]
    merged = merge_regions(regions)
    changes = sum(1 for a, b in zip(regions, regions[1:]) if a.state != b.state)
    assert len(merged) == changes == 3
    assert [(m.start0, m.end0, m.genotype) for m in merged] == [
        (200, 210, "ww-wc"),
        (300, 310, "wc-cc"),
        (500, 510, "cc-ww"),
    ]
    assert all(m.delta_w is None for m in merged)


def test_merge_single_state_yields_nothing():
    assert merge_regions([_region(0, 100, "wc"), _region(150, 300, "wc")]) == []
    assert merge_regions([_region(0, 100, "wc")]) == []
    assert merge_regions([]) == []


def test_merge_rejects_no_call_regions():
    with pytest.raises(ValueError):
        merge_regions([_region(0, 100, "ww"), Region("chr1", 110, 200, 1, 0)])


def test_refine_single_overlap_keeps_original_interval():
    merged = [GenotypedBreakpoint("chr1", 200, 210, "ww-wc")]
    breaks = [Breakpoint("chr1", 200, 210, 3.5), Breakpoint("chr1", 300, 310, 9.0)]
    refined = refine_breaks(merged, breaks)
    assert refined == [GenotypedBreakpoint("chr1", 200, 210, "ww-wc", 3.5)]


def test_refine_picks_max_delta_w_and_unions_ties():
    merged = [GenotypedBreakpoint("chr1", 100, 1000, "ww-cc")]
    breaks = [
        Breakpoint("chr1", 100, 110, 2.0),
        Breakpoint("chr1", 400, 410, 7.0),
        Breakpoint("chr1", 700, 705, 7.0),
        Breakpoint("chr1", 990, 1000, 1.0),
        Breakpoint("chr2", 400, 410, 50.0),
    ]
    refined = refine_breaks(merged, breaks)
    assert refined == [GenotypedBreakpoint("chr1", 400, 705, "ww-cc", 7.0)]


def test_refine_drops_breakpoints_without_overlap():
    merged = [GenotypedBreakpoint("chr1", 100, 200, "ww-cc")]
    assert refine_breaks(merged, [Breakpoint("chr1", 500, 510, 1.0)]) == []
