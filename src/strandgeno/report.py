from __future__ import annotations

import datetime as _dt
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Template

from .models import ConfidenceInterval, GenotypedBreakpoint, Region

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>strandgeno Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .card { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
    .small { color: #666; font-size: 0.9em; }
  </style>
</head>
<body>

<h1>strandgeno Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Run summary</h2>
<div class="grid">
  <div class="card">
    <h3>Inputs</h3>
    <table>
      <tr><th>Breakpoints</th><td><code>{{ breaks_path }}</code></td></tr>
      <tr><th>Fragments</th><td><code>{{ fragments_path }}</code></td></tr>
      <tr><th>Chromosomes</th><td>{{ n_chromosomes }}</td></tr>
    </table>
  </div>
  <div class="card">
    <h3>Model</h3>
    <table>
      <tr><th>Method</th><td>{{ params.geno_t }}</td></tr>
      <tr><th>Background</th><td>{{ params.background }}</td></tr>
      <tr><th>Min reads per region</th><td>{{ params.min_reads }}</td></tr>
      {% if params.conf is not none %}
      <tr><th>CI confidence / background</th><td>{{ params.conf }} / {{ params.ci_background }}</td></tr>
      {% endif %}
    </table>
  </div>
</div>

<h2>Regions</h2>
<table>
  <tr><th>Regions total</th><td>{{ n_regions }}</td></tr>
  <tr><th>No call (below min reads)</th><td>{{ n_no_call }}</td></tr>
  {% for state, n in state_counts %}
  <tr><th>{{ state }}</th><td>{{ n }}</td></tr>
  {% endfor %}
</table>

<h2>Genotyped breakpoints ({{ rows|length }})</h2>
{% if rows %}
<table>
  <tr><th>Chrom</th><th>Start</th><th>End</th><th>Genotype</th><th>deltaW</th>{% if with_ci %}<th>CI start</th><th>CI end</th>{% endif %}</tr>
  {% for r in rows %}
  <tr><td>{{ r.chrom }}</td><td>{{ r.start0 }}</td><td>{{ r.end0 }}</td><td>{{ r.genotype }}</td><td>{{ r.delta_w }}</td>{% if with_ci %}<td>{{ r.ci_start0 }}</td><td>{{ r.ci_end0 }}</td>{% endif %}</tr>
  {% endfor %}
</table>
{% else %}
<p>No region pair with different states was found.</p>
{% endif %}

<h2>Outputs</h2>
<ul>
  <li><code>breakpoints.genotyped.bed</code> (genotyped breakpoints)</li>
  {% if with_ci %}
  <li><code>breakpoints.confint.bed</code> (confidence intervals)</li>
  {% endif %}
  <li><code>regions.tsv.gz</code> (per-region read counts and states)</li>
  <li><code>summary.json</code> (machine-readable summary)</li>
</ul>

<hr>
<p class="small">strandgeno {{ version }}</p>
</body>
</html>"""
)


def _rows(
    gbreaks: Sequence[GenotypedBreakpoint], intervals: Optional[Sequence[ConfidenceInterval]]
) -> List[Dict[str, Any]]:
    rows = []
    for i, b in enumerate(gbreaks):
        row: Dict[str, Any] = {
            "chrom": b.chrom,
            "start0": b.start0,
            "end0": b.end0,
            "genotype": b.genotype,
            "delta_w": "." if b.delta_w is None else f"{b.delta_w:.4g}",
        }
        if intervals is not None:
            row["ci_start0"] = intervals[i].start0
            row["ci_end0"] = intervals[i].end0
        rows.append(row)
    return rows


def render_report(
    *,
    outdir: str | Path,
    version: str,
    run: Dict[str, Any],
    gbreaks: Sequence[GenotypedBreakpoint],
    regions: Sequence[Region],
    intervals: Optional[Sequence[ConfidenceInterval]] = None,
) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    states = Counter(r.state for r in regions if r.state is not None)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        breaks_path=run.get("breaks_path"),
        fragments_path=run.get("fragments_path"),
        n_chromosomes=len(run.get("chromosomes", [])),
        params=run.get("params", {}),
        n_regions=len(regions),
        n_no_call=sum(1 for r in regions if r.state is None),
        state_counts=sorted(states.items()),
        rows=_rows(gbreaks, intervals),
        with_ci=intervals is not None,
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    return out_path
