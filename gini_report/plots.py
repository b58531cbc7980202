"""Charts for the inequality report.

Color scheme: blue, orange, purple, gray (colorblind-friendly)
Style: Excel-like, simple and clean
"""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.ticker import FuncFormatter

from .config import COLORS, HOME_VALUE_SCALE, METHOD_AVERAGE, METHOD_COLORS, METHOD_MULTILEVEL, METHODS

COUNTY_PALETTE = [COLORS['blue'], COLORS['orange'], COLORS['purple'], COLORS['green'],
                  COLORS['red'], COLORS['teal'], COLORS['brown'], COLORS['gray']]
MARKERS = ['o', 's', '^', 'D', 'v', '<', '>']


def setup_excel_style():
    """Configure matplotlib to produce Excel-like charts."""
    plt.rcParams.update({
        'font.family': 'sans-serif',
        'font.size': 10,
        'axes.titlesize': 12,
        'axes.titleweight': 'bold',
        'axes.labelsize': 10,
        'axes.grid': True,
        'axes.axisbelow': True,
        'grid.alpha': 0.3,
        'grid.linestyle': '-',
        'legend.frameon': True,
        'legend.fancybox': False,
        'legend.edgecolor': 'black',
        'legend.fontsize': 9,
        'figure.facecolor': 'white',
        'axes.facecolor': 'white',
        'axes.edgecolor': 'black',
        'axes.linewidth': 0.8,
    })


def save_chart(fig, output_path):
    """Save chart with consistent settings. Returns the path."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150, bbox_inches='tight', facecolor='white', edgecolor='none')
    plt.close(fig)
    print(f"  Saved: {output_path}")
    return output_path


def dollars_axis(ax):
    """Format x-axis ticks (home value in $100k) as dollars."""
    ax.xaxis.set_major_formatter(FuncFormatter(lambda x, _: f'${x * HOME_VALUE_SCALE:,.0f}'))


def _line(ax, intercept, slope, x_min, x_max, **kwargs):
    x = np.linspace(x_min, x_max, 100)
    ax.plot(x, intercept + slope * x, **kwargs)


def plot_value_vs_gini(tracts, pooled, output_path):
    """Scatter of tract median home value vs Gini Index with the pooled OLS line."""
    setup_excel_style()
    fig, ax = plt.subplots(figsize=(10, 7))
    ax.scatter(tracts["home_value_100k"], tracts["gini"], color=COLORS['orange'], alpha=0.25, s=12,
               edgecolors='none', label=f'Census tracts (n={len(tracts):,})')
    b0, b1 = pooled.params["Intercept"], pooled.params["home_value_100k"]
    _line(ax, b0, b1, tracts["home_value_100k"].min(), tracts["home_value_100k"].max(),
          color=COLORS['blue'], linewidth=2, label='OLS (all tracts pooled)')
    ax.plot([], [], ' ', label=f'R² = {pooled.rsquared:.3f}')
    ax.set_xlabel('Median home value')
    ax.set_ylabel('Gini Index')
    ax.set_title('Median Home Value vs Income Inequality: California Census Tracts')
    dollars_axis(ax)
    ax.legend(loc='upper right', frameon=False)
    fig.tight_layout()
    return save_chart(fig, output_path)


def plot_simpson(tracts, pooled, slopes, output_path, highlight=6):
    """Tracts of the largest counties colored by county, each with its own OLS line; pooled line dashed."""
    setup_excel_style()
    fig, ax = plt.subplots(figsize=(10, 7))
    top = slopes.sort_values(["n_tracts", "county"], ascending=[False, True]).head(highlight)
    for i, row in enumerate(top.itertuples(index=False)):
        color = COUNTY_PALETTE[i % len(COUNTY_PALETTE)]
        grp = tracts[tracts["county"] == row.county]
        ax.scatter(grp["home_value_100k"], grp["gini"], color=color, alpha=0.3, s=12, edgecolors='none',
                   marker=MARKERS[i % len(MARKERS)])
        _line(ax, row.intercept, row.slope, grp["home_value_100k"].min(), grp["home_value_100k"].max(),
              color=color, linewidth=2, label=f'{row.county} (n={row.n_tracts}, slope={row.slope:+.3f})')
    shown = tracts[tracts["county"].isin(top["county"])]
    if len(shown) > 0:
        b0, b1 = pooled.params["Intercept"], pooled.params["home_value_100k"]
        _line(ax, b0, b1, shown["home_value_100k"].min(), shown["home_value_100k"].max(),
              color='black', linewidth=2, linestyle='--', label=f'Pooled (slope={b1:+.3f})')
    ax.set_xlabel('Median home value')
    ax.set_ylabel('Gini Index')
    ax.set_title('Within-County vs Pooled Relationship')
    dollars_axis(ax)
    ax.legend(loc='upper right', frameon=False)
    fig.tight_layout()
    return save_chart(fig, output_path)


def plot_county_means(means, output_path):
    """One point per county (mean home value, mean Gini), sized by tract count."""
    setup_excel_style()
    fig, ax = plt.subplots(figsize=(10, 7))
    sizes = 20 + 200 * means["n_tracts"] / max(means["n_tracts"].max(), 1)
    ax.scatter(means["home_value_100k"], means["gini"], s=sizes, color=COLORS['purple'], alpha=0.6,
               edgecolors='black', linewidths=0.5, label=f'Counties (n={len(means)}, size = tracts)')
    if len(means) >= 2 and means["home_value_100k"].std() > 0:
        slope, intercept = np.polyfit(means["home_value_100k"], means["gini"], 1)
        _line(ax, intercept, slope, means["home_value_100k"].min(), means["home_value_100k"].max(),
              color=COLORS['blue'], linewidth=2, label=f'Between-county fit (slope={slope:+.3f})')
    for row in means.nlargest(8, "n_tracts").itertuples(index=False):
        ax.annotate(row.county, (row.home_value_100k, row.gini), xytext=(4, 4),
                    textcoords='offset points', fontsize=8)
    ax.set_xlabel('County mean of tract median home value')
    ax.set_ylabel('County mean Gini Index')
    ax.set_title('County Averages: Between-County Relationship')
    dollars_axis(ax)
    ax.legend(loc='upper right', frameon=False)
    fig.tight_layout()
    return save_chart(fig, output_path)


def plot_causal_dag(output_path):
    """Causal graph: County confounds Home value → Gini."""
    setup_excel_style()
    fig, ax = plt.subplots(figsize=(7, 5))
    nodes = {
        "County": (0.5, 0.8),
        "Median home value": (0.18, 0.25),
        "Gini Index": (0.82, 0.25),
    }
    edges = [("County", "Median home value"), ("County", "Gini Index"), ("Median home value", "Gini Index")]
    for src, dst in edges:
        ax.annotate("", xy=nodes[dst], xytext=nodes[src],
                    arrowprops=dict(arrowstyle='-|>', color=COLORS['gray'], linewidth=1.5,
                                    shrinkA=38, shrinkB=38, mutation_scale=18))
    for label, (x, y) in nodes.items():
        color = COLORS['orange'] if label == "County" else COLORS['blue']
        ax.text(x, y, label, ha='center', va='center', fontsize=11, color='white', fontweight='bold',
                bbox=dict(boxstyle='round,pad=0.6', facecolor=color, edgecolor='black', linewidth=0.8))
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.axis('off')
    ax.set_title('Assumed Causal Structure')
    fig.tight_layout()
    return save_chart(fig, output_path)


def plot_county_comparison(comparison, output_path, level=0.95):
    """Point estimate and interval per county for each method, counties ordered by raw average."""
    setup_excel_style()
    order = (comparison[comparison["method"] == METHOD_AVERAGE]
             .sort_values(["estimate", "county"])["county"].tolist())
    if not order:
        order = sorted(comparison["county"].unique())
    y_pos = {county: i for i, county in enumerate(order)}
    methods = [m for m in METHODS if m in set(comparison["method"])]
    offsets = np.linspace(-0.25, 0.25, len(methods)) if len(methods) > 1 else [0.0]

    fig, ax = plt.subplots(figsize=(10, max(6, 0.3 * len(order))))
    for offset, method in zip(offsets, methods):
        sub = comparison[(comparison["method"] == method) & comparison["county"].isin(list(y_pos))]
        y = sub["county"].map(y_pos).to_numpy() + offset
        est = sub["estimate"].to_numpy()
        lo = np.where(np.isfinite(sub["lower"]), np.maximum(est - sub["lower"].to_numpy(), 0), 0)
        hi = np.where(np.isfinite(sub["upper"]), np.maximum(sub["upper"].to_numpy() - est, 0), 0)
        ax.errorbar(est, y, xerr=[lo, hi], fmt='o', markersize=4, color=METHOD_COLORS[method],
                    ecolor=METHOD_COLORS[method], elinewidth=1.2, capsize=0, label=method)
    ax.set_yticks(range(len(order)))
    ax.set_yticklabels(order, fontsize=8)
    ax.set_ylim(-1, len(order))
    ax.set_xlabel(f'Gini Index ({level:.0%} interval)')
    ax.set_title('County Inequality: Average vs Fixed Effects vs Multilevel')
    ax.legend(loc='lower right', frameon=True)
    fig.tight_layout()
    return save_chart(fig, output_path)


def plot_shrinkage(shrinkage, grand_mean, output_path):
    """Raw county average and multilevel estimate against tract count; arrows show partial pooling."""
    setup_excel_style()
    fig, ax = plt.subplots(figsize=(10, 7))
    n = shrinkage["n_tracts"].to_numpy()
    ax.scatter(n, shrinkage["raw_average"], color=METHOD_COLORS[METHOD_AVERAGE], s=30, alpha=0.8,
               label='County average')
    ax.scatter(n, shrinkage["multilevel"], color=METHOD_COLORS[METHOD_MULTILEVEL], s=30, alpha=0.8,
               label='Multilevel model')
    for row in shrinkage.itertuples(index=False):
        ax.plot([row.n_tracts, row.n_tracts], [row.raw_average, row.multilevel], color=COLORS['gray'],
                linewidth=0.8, alpha=0.7)
    ax.axhline(grand_mean, color='black', linestyle='--', linewidth=1.2, label=f'Statewide mean ({grand_mean:.3f})')
    ax.set_xscale('log')
    ax.xaxis.set_major_formatter(FuncFormatter(lambda x, _: f'{x:,.0f}'))
    ax.set_xlabel('Tracts in county (log scale)')
    ax.set_ylabel('Gini Index')
    ax.set_title('Partial Pooling: Small Counties Shrink Toward the Statewide Mean')
    ax.legend(loc='upper right', frameon=False)
    fig.tight_layout()
    return save_chart(fig, output_path)

"""MIT License

Creative Commons CC-BY-SA 4.0 2026 Diego Aguilar-Canabal"""
