import random

import numpy as np
import pytest

from strandgeno.intervals import build_fragment_index, find_overlaps, gaps, reduce_intervals
from strandgeno.models import Fragment


def _random_fragments(n: int, chrom: str = "chr1", seed: int = 3) -> list[Fragment]:
    rng = random.Random(seed)
    out = []
    for _ in range(n):
        s = rng.randrange(0, 5000)
        out.append(Fragment(chrom, s, s + rng.randrange(1, 300), rng.choice("+-")))
    return out


def test_reduce_intervals_unions_overlapping_and_touching():
    assert reduce_intervals([(50, 60), (0, 10), (10, 20), (15, 18)]) == [(0, 20), (50, 60)]


def test_gaps_include_both_ends():
    assert gaps([(100, 101), (500, 510)], 0, 1000) == [(0, 100), (101, 500), (510, 1000)]


def test_gaps_skip_zero_width():
    assert gaps([(0, 10), (10, 20), (990, 1000)], 0, 1000) == [(20, 990)]


def test_gaps_without_intervals_is_whole_span():
    assert gaps([], 0, 42) == [(0, 42)]


def test_strand_counts_match_brute_force():
    frags = _random_fragments(400)
    idx = build_fragment_index(frags)["chr1"]
    queries = [(0, 100), (100, 1000), (1000, 1001), (2500, 4000), (4999, 6000), (6000, 7000)]

    w, c = idx.count_strands([q[0] for q in queries], [q[1] for q in queries])
    for k, (qs, qe) in enumerate(queries):
        ov = [f for f in frags if f.start0 < qe and f.end0 > qs]
        assert w[k] == sum(1 for f in ov if f.strand == "-")
        assert c[k] == sum(1 for f in ov if f.strand == "+")


def test_fragment_index_sorted_by_start():
    frags = _random_fragments(50)
    idx = build_fragment_index(frags)["chr1"]
    assert len(idx) == 50
    assert np.all(np.diff(idx.starts) >= 0)
    assert idx.span_end == max(f.end0 for f in frags)


def test_fragment_index_rejects_unknown_strand():
    with pytest.raises(ValueError, match="strand"):
        build_fragment_index([Fragment("chr1", 0, 10, "*")])


def test_find_overlaps_handles_nested_subjects():
    subjects = [(0, 1000), (10, 20), (500, 600), (2000, 2100)]
    hits = find_overlaps([(550, 560), (20, 30), (1500, 1600), (0, 3000)], subjects)
    assert hits[0] == [0, 2]
    assert hits[1] == [0]
    assert hits[2] == []
    assert sorted(hits[3]) == [0, 1, 2, 3]
