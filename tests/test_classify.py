import math

import pytest
from scipy.stats import binom, fisher_exact

from strandgeno.classify import NO_CALL, classify_region, genotype_binom, genotype_fisher, get_genotyper
from strandgeno.models import Region


@pytest.mark.parametrize("roi", [None, float("nan"), 9, 0])
def test_fisher_no_call_below_min_reads(roi):
    assert genotype_fisher(5, 4, roi, background=0.05, min_reads=10) == NO_CALL


def test_binom_no_call_below_min_reads():
    assert genotype_binom(5, 4, min_reads=10) == NO_CALL
    assert genotype_binom(None, 4) == NO_CALL
    assert genotype_binom(5, 4, min_reads=9).is_call


def test_fisher_calls_each_state():
    assert genotype_fisher(1, 29, 30).label == "ww"
    assert genotype_fisher(30, 5, 35).label == "cc"
    call = genotype_fisher(15, 15, 30)
    assert call.label == "wc"
    assert call.score == pytest.approx(0.0)


def test_fisher_score_is_minimum_p_value():
    # 30 reads at 5% background -> reference split (28, 2) after half-to-even rounding
    _, ww_p = fisher_exact([[29, 1], [28, 2]], alternative="greater")
    call = genotype_fisher(1, 29, 30, background=0.05)
    assert call.score == pytest.approx(ww_p)


def test_binom_calls_each_state():
    assert genotype_binom(28, 2).label == "ww"
    assert genotype_binom(2, 28).label == "cc"
    assert genotype_binom(15, 15).label == "wc"


def test_binom_scores_use_watson_reads():
    call = genotype_binom(2, 28, background=0.05)
    assert call.score == pytest.approx(binom.pmf(2, 30, 0.05))


def test_binom_log_space():
    plain = genotype_binom(27, 3, background=0.05)
    logged = genotype_binom(27, 3, background=0.05, log=True)
    assert logged.label == plain.label
    assert logged.score == pytest.approx(math.log(plain.score))


def test_binom_large_region_label_matches_log_space():
    plain = genotype_binom(8000, 42000, background=0.05)
    logged = genotype_binom(8000, 42000, background=0.05, log=True)
    assert plain.label == logged.label == "cc"
    assert plain.score == pytest.approx(0.0)


def test_classifiers_are_deterministic():
    for _ in range(3):
        assert genotype_fisher(7, 13, 20) == genotype_fisher(7, 13, 20)
        assert genotype_binom(13, 7) == genotype_binom(13, 7)


def test_get_genotyper_rejects_unknown_method():
    with pytest.raises(ValueError, match="geno_t"):
        get_genotyper("poisson")


def test_classify_region_returns_new_region():
    region = Region("chr1", 0, 100, w_count=20, c_count=1)
    called = classify_region(region, get_genotyper("binom"))
    assert called.state == "ww"
    assert called.score is not None
    assert region.state is None

    sparse = classify_region(Region("chr1", 0, 100, w_count=2, c_count=1), get_genotyper("fisher"))
    assert sparse.state is None and sparse.score is None
