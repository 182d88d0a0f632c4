from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .bedfiles import (
    read_breakpoints,
    read_chrom_sizes,
    read_fragments,
    read_genotyped_breaks,
    write_confidence_intervals,
    write_genotyped_breaks,
    write_regions,
)
from .classify import GENOTYPE_METHODS
from .confidence import confidence_intervals
from .genotype import run_genotyping
from .intervals import build_fragment_index
from .report import render_report
from .toy_data import make_toy_data
from .utils import dataclass_to_jsonable, ensure_outdir, write_json
from .validation import (
    check_breakpoints,
    check_confidence_params,
    check_genotype_params,
    detect_contig_style,
    reconcile_chrom_sizes,
    reconcile_contigs,
)


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _log_path(outdir: Path, name: str) -> Path:
    return outdir / "logs" / name


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    sys.stderr.write(f"{err.__class__.__name__}: {err}\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="strandgeno",
        description=(
            "strandgeno: genotype the regions between Strand-seq breakpoints (WW/CC/WC), "
            "refine breakpoints to the strongest deltaW and estimate confidence intervals."
        ),
    )
    p.add_argument("--version", action="version", version=f"strandgeno {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser(
        "quickstart",
        help="Print ready-to-run recipes for common scenarios.",
    )

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate tiny breakpoint/fragment BED files for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--seed", type=int, default=7, help="Random seed for simulated reads.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # genotype
    # -----------------
    g = sub.add_parser(
        "genotype",
        help="Genotype regions between breakpoints and write state-change breakpoints.",
    )
    g.add_argument(
        "--breaks",
        required=True,
        type=_path_exists,
        help="Breakpoint BED: chrom, start, end, deltaW.",
    )
    g.add_argument(
        "--fragments",
        required=True,
        type=_path_exists,
        help="Fragment BED (.bed/.bed.gz): chrom, start, end, strand (or BED6).",
    )
    g.add_argument("--outdir", required=True, help="Output directory.")
    g.add_argument(
        "--chrom-sizes",
        default=None,
        type=_path_exists,
        help="Optional chrom.sizes; otherwise chromosome ends are inferred from the data.",
    )
    g.add_argument(
        "--background",
        type=float,
        default=0.05,
        help="Fraction of wrong-strand reads allowed in WW/CC regions.",
    )
    g.add_argument(
        "--min-reads",
        type=int,
        default=10,
        help="Minimal number of reads in a region for it to be genotyped.",
    )
    g.add_argument(
        "--geno-t",
        choices=list(GENOTYPE_METHODS),
        default="fisher",
        help="Genotyping method.",
    )
    g.add_argument(
        "--log-space",
        action="store_true",
        help="Report binomial scores as log probabilities (--geno-t binom).",
    )
    g.add_argument(
        "--confint",
        action="store_true",
        help="Also estimate confidence intervals around each genotyped breakpoint.",
    )
    g.add_argument(
        "--ci-background",
        type=float,
        default=0.02,
        help="Background rate used for confidence intervals.",
    )
    g.add_argument("--conf", type=float, default=0.99, help="Confidence level for intervals.")
    g.add_argument("--threads", type=int, default=1, help="Worker processes (one chromosome each).")
    g.add_argument(
        "--contig-style",
        choices=["ucsc", "ensembl", "auto"],
        default="auto",
        help="Contig naming style to reconcile breakpoint and fragment files.",
    )
    g.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned outputs.")
    g.add_argument("--resume", action="store_true", help="Skip if outputs already exist.")
    g.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    # -----------------
    # confint
    # -----------------
    c = sub.add_parser(
        "confint",
        help="Estimate confidence intervals for an existing genotyped breakpoint BED.",
    )
    c.add_argument(
        "--gbreaks",
        required=True,
        type=_path_exists,
        help="Genotyped breakpoint BED written by 'strandgeno genotype'.",
    )
    c.add_argument("--fragments", required=True, type=_path_exists, help="Fragment BED (.bed/.bed.gz).")
    c.add_argument("--out", required=True, help="Output BED path.")
    c.add_argument("--background", type=float, default=0.02, help="Background rate.")
    c.add_argument("--conf", type=float, default=0.99, help="Confidence level.")
    c.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    return p


# -----------------
# Command handlers
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "strandgeno quickstart (copy/paste):",
        "",
        "1) Try it on simulated data:",
        "   strandgeno make-toy-data --outdir toy/",
        "   strandgeno genotype \\",
        "     --breaks toy/breaks.bed \\",
        "     --fragments toy/fragments.bed.gz \\",
        "     --chrom-sizes toy/chrom.sizes \\",
        "     --outdir results/ --confint",
        "",
        "2) Your own cell (breakpoints + fragments):",
        "   strandgeno genotype \\",
        "     --breaks cell.breaks.bed \\",
        "     --fragments cell.fragments.bed.gz \\",
        "     --outdir results/",
        "   Outputs: results/breakpoints.genotyped.bed, results/regions.tsv.gz, results/report.html",
        "",
        "3) Confidence intervals for existing calls:",
        "   strandgeno confint \\",
        "     --gbreaks results/breakpoints.genotyped.bed \\",
        "     --fragments cell.fragments.bed.gz \\",
        "     --out results/breakpoints.confint.bed",
        "",
        "Tip: use --dry-run to validate inputs and list planned outputs.",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir, seed=int(args.seed))
    print(json.dumps(summary, indent=2))
    return 0


def cmd_genotype(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    log_path = _log_path(outdir, "genotype.log")
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("strandgeno")
    logger.info("strandgeno %s", __version__)

    try:
        check_genotype_params(
            background=float(args.background), min_reads=int(args.min_reads), geno_t=args.geno_t
        )
        if args.confint:
            check_confidence_params(background=float(args.ci_background), conf=float(args.conf))

        breaks = read_breakpoints(args.breaks)
        check_breakpoints(breaks)
        fragments = read_fragments(args.fragments)
        chrom_lengths = read_chrom_sizes(args.chrom_sizes) if args.chrom_sizes else None

        if args.dry_run:
            print("Dry-run: inputs look OK.")
            print(f"Breakpoints: {len(breaks)} on {len({b.chrom for b in breaks})} chromosome(s)")
            print(f"Fragments: {len(fragments)}")
            print(f"Breakpoint contig style: {detect_contig_style({b.chrom for b in breaks})}")
            print(f"Fragment contig style: {detect_contig_style({f.chrom for f in fragments})}")
            print("Planned outputs:")
            print(f"  breakpoints.genotyped.bed -> {outdir / 'breakpoints.genotyped.bed'}")
            if args.confint:
                print(f"  breakpoints.confint.bed -> {outdir / 'breakpoints.confint.bed'}")
            print(f"  regions.tsv.gz -> {outdir / 'regions.tsv.gz'}")
            print(f"  summary.json -> {outdir / 'summary.json'}")
            print(f"  report.html -> {outdir / 'report.html'}")
            return 0

        outdir = ensure_outdir(outdir)

        if args.resume and (outdir / "summary.json").exists():
            logger.info("Resume enabled: summary.json already exists in %s", outdir)
            print(str(outdir / "breakpoints.genotyped.bed"))
            return 0

        breaks = reconcile_contigs(breaks, fragments, args.contig_style)
        if chrom_lengths is not None:
            chrom_lengths = reconcile_chrom_sizes(chrom_lengths, breaks)
        index = build_fragment_index(fragments)

        result = run_genotyping(
            breaks,
            index,
            background=float(args.background),
            min_reads=int(args.min_reads),
            geno_t=args.geno_t,
            log=bool(args.log_space),
            chrom_lengths=chrom_lengths,
            threads=int(args.threads),
            progress=True,
        )

        gbreaks_path = write_genotyped_breaks(outdir / "breakpoints.genotyped.bed", result.breakpoints)
        write_regions(outdir / "regions.tsv.gz", result.regions)

        intervals = None
        if args.confint:
            intervals = confidence_intervals(
                result.breakpoints,
                index,
                background=float(args.ci_background),
                conf=float(args.conf),
            )
            write_confidence_intervals(outdir / "breakpoints.confint.bed", intervals)

        run = {
            "breaks_path": str(args.breaks),
            "fragments_path": str(args.fragments),
            "chromosomes": result.chromosomes,
            "params": {
                "background": float(args.background),
                "min_reads": int(args.min_reads),
                "geno_t": args.geno_t,
                "log": bool(args.log_space),
                "conf": float(args.conf) if args.confint else None,
                "ci_background": float(args.ci_background) if args.confint else None,
            },
            "counts": {
                "breakpoints_in": len(breaks),
                "fragments_in": len(fragments),
                "regions": len(result.regions),
                "regions_no_call": sum(1 for r in result.regions if r.state is None),
                "breakpoints_genotyped": len(result.breakpoints),
            },
            "breakpoints": [dataclass_to_jsonable(b) for b in result.breakpoints],
            "confidence_intervals": (
                [dataclass_to_jsonable(ci) for ci in intervals] if intervals is not None else None
            ),
            "runtime_seconds": result.runtime_seconds,
        }
        write_json(outdir / "summary.json", run)

        report_path = render_report(
            outdir=outdir,
            version=__version__,
            run=run,
            gbreaks=result.breakpoints,
            regions=result.regions,
            intervals=intervals,
        )

        logger.info("Report written: %s", report_path)
        print(str(gbreaks_path))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=None if args.dry_run else log_path)


def cmd_confint(args: argparse.Namespace) -> int:
    out = Path(args.out).expanduser().resolve()
    log_path = _log_path(out.parent, "confint.log")
    _setup_logging(args.verbose, logfile=log_path)

    logger = logging.getLogger("strandgeno")
    logger.info("strandgeno %s", __version__)

    try:
        check_confidence_params(background=float(args.background), conf=float(args.conf))
        gbreaks = read_genotyped_breaks(args.gbreaks)
        fragments = read_fragments(args.fragments)
        intervals = confidence_intervals(
            gbreaks,
            fragments,
            background=float(args.background),
            conf=float(args.conf),
        )
        write_confidence_intervals(out, intervals)
        logger.info("Confidence intervals written: %s", out)
        print(str(out))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "genotype":
        return cmd_genotype(args)
    if args.cmd == "confint":
        return cmd_confint(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
