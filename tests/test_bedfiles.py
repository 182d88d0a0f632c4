import gzip
from pathlib import Path

import pytest

from strandgeno.bedfiles import (
    read_breakpoints,
    read_chrom_sizes,
    read_fragments,
    read_genotyped_breaks,
    write_confidence_intervals,
    write_genotyped_breaks,
    write_regions,
)
from strandgeno.models import Breakpoint, ConfidenceInterval, Fragment, GenotypedBreakpoint, Region


def test_read_breakpoints_skips_comments_and_header(tmp_path: Path) -> None:
    p = tmp_path / "breaks.bed"
    p.write_text(
        "track name=breaks\nseqnames\tstart\tend\tdeltaW\nchr1\t100\t110\t3.5\nchr2\t5\t6\t0.25\textra\n",
        encoding="utf-8",
    )
    assert read_breakpoints(p) == [
        Breakpoint("chr1", 100, 110, 3.5),
        Breakpoint("chr2", 5, 6, 0.25),
    ]


def test_read_breakpoints_rejects_inverted_interval(tmp_path: Path) -> None:
    p = tmp_path / "breaks.bed"
    p.write_text("chr1\t100\t100\t1.0\n", encoding="utf-8")
    with pytest.raises(ValueError, match="end"):
        read_breakpoints(p)


def test_read_fragments_bed6_gz_and_bed4(tmp_path: Path) -> None:
    bed6 = tmp_path / "frags.bed.gz"
    with gzip.open(bed6, "wt") as fh:
        fh.write("chr1\t0\t50\tr1\t60\t+\nchr1\t10\t80\tr2\t60\t-\n")
    bed4 = tmp_path / "frags.bed"
    bed4.write_text("chr1\t0\t50\t-\n", encoding="utf-8")

    assert read_fragments(bed6) == [Fragment("chr1", 0, 50, "+"), Fragment("chr1", 10, 80, "-")]
    assert read_fragments(bed4) == [Fragment("chr1", 0, 50, "-")]


def test_read_fragments_rejects_unstranded(tmp_path: Path) -> None:
    p = tmp_path / "frags.bed"
    p.write_text("chr1\t0\t50\t.\n", encoding="utf-8")
    with pytest.raises(ValueError, match="strand"):
        read_fragments(p)


def test_chrom_sizes(tmp_path: Path) -> None:
    p = tmp_path / "chrom.sizes"
    p.write_text("chr1\t1000\nchr2\t500\n", encoding="utf-8")
    assert read_chrom_sizes(p) == {"chr1": 1000, "chr2": 500}


def test_genotyped_breaks_file_is_readable_back(tmp_path: Path) -> None:
    gbreaks = [
        GenotypedBreakpoint("chr1", 1000, 1001, "ww-wc", 3.0),
        GenotypedBreakpoint("chr1", 5000, 5001, "wc-cc", None),
    ]
    p = write_genotyped_breaks(tmp_path / "g.bed", gbreaks)
    assert p.read_text(encoding="utf-8").splitlines()[1] == "chr1\t1000\t1001\tww-wc\t3"
    assert read_genotyped_breaks(p) == gbreaks


def test_write_confidence_intervals_and_regions(tmp_path: Path) -> None:
    ci = write_confidence_intervals(tmp_path / "ci.bed", [ConfidenceInterval("chr1", 800, 1250)])
    assert ci.read_text(encoding="utf-8").splitlines() == ["#chrom\tstart\tend", "chr1\t800\t1250"]

    regions = [Region("chr1", 0, 1000, 18, 2, "ww", 0.5), Region("chr1", 1001, 1100, 1, 2)]
    out = write_regions(tmp_path / "regions.tsv.gz", regions)
    with gzip.open(out, "rt") as fh:
        lines = fh.read().splitlines()
    assert lines[1].split("\t") == ["chr1", "0", "1000", "18", "2", "20", "ww", "0.5"]
    assert lines[2].split("\t")[-2:] == [".", "."]
