"""
Unit Tests - HTML report
========================
"""

import base64

import pandas as pd

from gini_report import report

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def test_embed_png(tmp_path):
    path = tmp_path / "county_comparison.png"
    path.write_bytes(PNG_BYTES)
    tag = report.embed_png(path)
    assert tag.startswith('<img src="data:image/png;base64,')
    assert base64.b64encode(PNG_BYTES).decode("ascii") in tag
    assert 'alt="county comparison"' in tag


def test_paragraphs_escape_text():
    out = report.paragraphs("Gini <0.5 & rising\n\nSecond block")
    assert out == "<p>Gini &lt;0.5 &amp; rising</p>\n<p>Second block</p>"


def test_build_report_sections(tmp_path):
    fig = tmp_path / "a.png"
    fig.write_bytes(PNG_BYTES)
    sections = [
        report.section("Data", "100 tracts"),
        report.section("Chart", figure=fig, html_blocks=["<table><tr><td>x</td></tr></table>"]),
    ]
    page = report.build_report("Title <One>", sections, meta="run 1")
    assert page.startswith("<!DOCTYPE html>")
    assert "<title>Title &lt;One&gt;</title>" in page
    assert "<h2>Data</h2>" in page and "<h2>Chart</h2>" in page
    assert "<p>100 tracts</p>" in page
    assert "data:image/png;base64," in page
    # trusted blocks pass through unescaped
    assert "<table><tr><td>x</td></tr></table>" in page
    assert '<p class="meta">run 1</p>' in page


def test_estimates_table_html():
    df = pd.DataFrame({"county": ["Kern"], "estimate": [0.412345], "lower": [float("nan")]})
    out = report.estimates_table_html(df)
    assert "Kern" in out and "0.4123" in out and "–" in out


def test_write_report(tmp_path):
    path = report.write_report(tmp_path / "out" / "report.html", "T", [report.section("S", "text")])
    text = path.read_text(encoding="utf-8")
    assert "<h2>S</h2>" in text
    assert "Generated " in text
