import json
import subprocess
import sys
from pathlib import Path

from strandgeno.toy_data import make_toy_data


def _run_cli(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "strandgeno"] + args,
        check=False,
        capture_output=True,
        text=True,
    )


def _data_lines(path: Path) -> list[list[str]]:
    return [l.split("\t") for l in path.read_text(encoding="utf-8").splitlines() if not l.startswith("#")]


def test_quickstart_output() -> None:
    cp = _run_cli(["quickstart"])
    assert cp.returncode == 0
    assert "strandgeno genotype" in cp.stdout
    assert "strandgeno confint" in cp.stdout


def test_genotype_dry_run_does_not_write_outputs(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    outdir = tmp_path / "out"
    cp = _run_cli(
        [
            "genotype",
            "--breaks",
            toy["breaks_bed"],
            "--fragments",
            toy["fragments_bed"],
            "--outdir",
            str(outdir),
            "--dry-run",
        ]
    )
    assert cp.returncode == 0
    assert "Dry-run" in cp.stdout
    assert not (outdir / "summary.json").exists()


def test_make_toy_data_and_genotype(tmp_path: Path) -> None:
    toy_dir = tmp_path / "toy"
    cp = _run_cli(["make-toy-data", "--outdir", str(toy_dir)])
    assert cp.returncode == 0

    outdir = tmp_path / "out"
    cp = _run_cli(
        [
            "genotype",
            "--breaks",
            str(toy_dir / "breaks.bed"),
            "--fragments",
            str(toy_dir / "fragments.bed.gz"),
            "--chrom-sizes",
            str(toy_dir / "chrom.sizes"),
            "--outdir",
            str(outdir),
            "--confint",
        ]
    )
    assert cp.returncode == 0, cp.stderr
    assert (outdir / "report.html").exists()
    assert (outdir / "regions.tsv.gz").exists()

    rows = _data_lines(outdir / "breakpoints.genotyped.bed")
    assert [(r[0], r[1], r[2], r[3]) for r in rows] == [
        ("chr1", "599000", "601000", "ww-wc"),
        ("chr1", "1199000", "1201000", "wc-cc"),
    ]

    cis = _data_lines(outdir / "breakpoints.confint.bed")
    assert len(cis) == 2
    for r, ci in zip(rows, cis):
        assert int(ci[1]) <= int(r[1]) and int(ci[2]) >= int(r[2])

    summary = json.loads((outdir / "summary.json").read_text(encoding="utf-8"))
    assert summary["counts"]["breakpoints_genotyped"] == 2

    out_bed = tmp_path / "ci" / "again.bed"
    cp = _run_cli(
        [
            "confint",
            "--gbreaks",
            str(outdir / "breakpoints.genotyped.bed"),
            "--fragments",
            str(toy_dir / "fragments.bed.gz"),
            "--out",
            str(out_bed),
        ]
    )
    assert cp.returncode == 0, cp.stderr
    assert _data_lines(out_bed) == cis
    assert (out_bed.parent / "logs" / "confint.log").exists()


def test_empty_breaks_message(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    empty = tmp_path / "empty.bed"
    empty.write_text("#chrom\tstart\tend\tdeltaW\n", encoding="utf-8")

    cp = _run_cli(
        [
            "genotype",
            "--breaks",
            str(empty),
            "--fragments",
            toy["fragments_bed"],
            "--outdir",
            str(tmp_path / "out"),
        ]
    )
    assert cp.returncode == 2
    assert "argument 'breaks' is empty" in cp.stderr


def test_contig_mismatch_message(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    breaks = tmp_path / "breaks.bed"
    breaks.write_text("chrUn\t100\t200\t1.0\n", encoding="utf-8")

    cp = _run_cli(
        [
            "genotype",
            "--breaks",
            str(breaks),
            "--fragments",
            toy["fragments_bed"],
            "--outdir",
            str(tmp_path / "out"),
        ]
    )
    assert cp.returncode != 0
    assert "Contig mismatch" in cp.stderr
