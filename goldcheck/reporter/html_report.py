"""HTML report generator — a side-by-side page for one mismatching golden."""

from __future__ import annotations

import html
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

_STYLE = """
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
         background: #0f172a; color: #e2e8f0; margin: 0; padding: 24px; }
  h1 { font-size: 18px; margin: 0 0 8px 0; }
  .failure-banner { background: #450a0a; border-left: 4px solid #ef4444;
                    padding: 10px 14px; margin: 12px 0 20px 0; }
  .failure-banner.tolerated { background: #422006; border-left-color: #eab308; }
  table { border-collapse: collapse; }
  th { text-align: left; padding: 6px 10px; color: #94a3b8; font-weight: 600; }
  td { padding: 6px 10px; vertical-align: top; }
  td img { max-width: 100%; border: 1px solid #334155;
           background: repeating-conic-gradient(#1e293b 0% 25%, #0f172a 0% 50%) 50% / 16px 16px; }
  code { color: #93c5fd; }
"""


def _image_cell(src: str) -> str:
    return f'<td><a href="{html.escape(src)}"><img src="{html.escape(src)}"></a></td>'


def build_report_html(
    filename: str,
    basename: str,
    rate: float,
    max_diff_rate_failure: float,
) -> str:
    """Render the report page; images are referenced relative to the report file."""
    tolerated = rate < max_diff_rate_failure
    banner_class = "failure-banner tolerated" if tolerated else "failure-banner"
    verdict = "within the allowed rate" if tolerated else "above the allowed rate"
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{html.escape(filename)} — golden mismatch</title>
<style>{_STYLE}</style>
</head>
<body>
<h1>Golden file <code>{html.escape(filename)}</code> did not match the image generated by the test.</h1>
<div class="{banner_class}">
  {rate:.4%} of pixels were different ({verdict}; maximum allowed rate is {max_diff_rate_failure:.4%}).
</div>
<table>
  <tr>
    <th>Expected</th>
    <th>Diff</th>
    <th>Actual</th>
  </tr>
  <tr>
    {_image_cell(f"{basename}.expected.png")}
    {_image_cell(f"{basename}.diff.png")}
    {_image_cell(f"{basename}.actual.png")}
  </tr>
</table>
</body>
</html>
"""


def generate_html_report(
    filename: str,
    basename: str,
    rate: float,
    max_diff_rate_failure: float,
    output_path: Path,
) -> None:
    """Write the comparison page for a mismatching golden."""
    content = build_report_html(filename, basename, rate, max_diff_rate_failure)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.debug("HTML report written to %s", output_path)
