"""Standalone HTML report: figures embedded as base64 PNG, statsmodels summaries, county tables."""

import base64
import html
from datetime import datetime
from pathlib import Path

REPORT_CSS = """
body { font-family: sans-serif; max-width: 1000px; margin: 2em auto; color: #222; line-height: 1.45; }
h1 { border-bottom: 2px solid #4472C4; padding-bottom: 0.2em; }
h2 { color: #4472C4; margin-top: 2em; }
img { max-width: 100%; border: 1px solid #ddd; }
table { border-collapse: collapse; font-size: 0.85em; margin: 1em 0; }
th, td { border: 1px solid #ccc; padding: 3px 8px; text-align: right; }
th { background: #f2f2f2; }
.meta { color: #808080; font-size: 0.9em; }
"""


def embed_png(path):
    """Return an <img> tag with the PNG at path inlined as base64."""
    data = base64.b64encode(Path(path).read_bytes()).decode("ascii")
    alt = html.escape(Path(path).stem.replace("_", " "))
    return f'<img src="data:image/png;base64,{data}" alt="{alt}">'


def paragraphs(text):
    """Escape free text and split it into <p> blocks on blank lines."""
    blocks = [b.strip() for b in str(text).split("\n\n") if b.strip()]
    return "\n".join(f"<p>{html.escape(b)}</p>" for b in blocks)


def section(title, text="", figure=None, html_blocks=None):
    """One report section. html_blocks are trusted HTML (statsmodels / pandas output)."""
    return {"title": title, "text": text, "figure": figure, "html": list(html_blocks or [])}


def build_report(title, sections, meta=""):
    """Assemble the full HTML page as a string."""
    parts = [
        "<!DOCTYPE html>",
        "<html lang=\"en\">",
        "<head>",
        "<meta charset=\"utf-8\">",
        f"<title>{html.escape(title)}</title>",
        f"<style>{REPORT_CSS}</style>",
        "</head>",
        "<body>",
        f"<h1>{html.escape(title)}</h1>",
    ]
    if meta:
        parts.append(f'<p class="meta">{html.escape(meta)}</p>')
    for sec in sections:
        parts.append(f"<h2>{html.escape(sec['title'])}</h2>")
        if sec.get("text"):
            parts.append(paragraphs(sec["text"]))
        if sec.get("figure") is not None:
            parts.append(embed_png(sec["figure"]))
        parts.extend(sec.get("html") or [])
    parts.extend(["</body>", "</html>"])
    return "\n".join(parts)


def estimates_table_html(df, float_format="{:.4f}"):
    """County aggregates as an HTML table."""
    return df.to_html(index=False, na_rep="–", float_format=float_format.format, border=0)


def write_report(output_path, title, sections, meta=None):
    """Write the HTML report. Returns the path."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if meta is None:
        meta = f"Generated {datetime.now():%Y-%m-%d %H:%M}"
    output_path.write_text(build_report(title, sections, meta=meta), encoding="utf-8")
    print(f"  Saved: {output_path}")
    return output_path

"""MIT License

Creative Commons CC-BY-SA 4.0 2026 Diego Aguilar-Canabal"""
