"""
visualization.py — Plotly figure factories for simulated fund outcomes.

Depends on: fund.py, simulation.py
All functions return plotly.graph_objects.Figure objects.
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from scipy.stats import gaussian_kde

from vc_fund_sim.fund import SimulationResult
from vc_fund_sim.simulation import MonteCarloResults


# ---------------------------------------------------------------------------
# Theme
# ---------------------------------------------------------------------------

_VC_COLORS = {
    "background": "#0D1117",
    "paper": "#161B22",
    "grid": "#21262D",
    "text": "#C9D1D9",
    "text_secondary": "#8B949E",
    "accent": "#58A6FF",
    "positive": "#3FB950",
    "negative": "#F85149",
    "neutral": "#FFA657",
}

_STRATEGY_PALETTE = ["#58A6FF", "#3FB950", "#FFA657", "#F85149", "#BC8CFF", "#39C5CF"]

_PLOTLY_TEMPLATE = "plotly_dark"


def _apply_vc_theme(fig: go.Figure) -> go.Figure:
    """
    Apply the dark-background theme to a Plotly figure.

    Modifies the figure in-place and returns it for chaining.
    """
    fig.update_layout(
        template=_PLOTLY_TEMPLATE,
        paper_bgcolor=_VC_COLORS["paper"],
        plot_bgcolor=_VC_COLORS["background"],
        font=dict(
            family="Inter, -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif",
            color=_VC_COLORS["text"],
            size=12,
        ),
        title_font=dict(size=16, color=_VC_COLORS["text"]),
        legend=dict(
            bgcolor=_VC_COLORS["paper"],
            bordercolor=_VC_COLORS["grid"],
            borderwidth=1,
            font=dict(color=_VC_COLORS["text_secondary"]),
        ),
        hoverlabel=dict(
            bgcolor=_VC_COLORS["paper"],
            bordercolor=_VC_COLORS["grid"],
            font=dict(color=_VC_COLORS["text"]),
        ),
    )
    fig.update_xaxes(
        gridcolor=_VC_COLORS["grid"],
        zerolinecolor=_VC_COLORS["grid"],
        tickfont=dict(color=_VC_COLORS["text_secondary"]),
    )
    fig.update_yaxes(
        gridcolor=_VC_COLORS["grid"],
        zerolinecolor=_VC_COLORS["grid"],
        tickfont=dict(color=_VC_COLORS["text_secondary"]),
    )
    return fig


def _add_kde(fig: go.Figure, values: np.ndarray, color: str, name: str = "KDE") -> None:
    """Overlay a Gaussian KDE line; skipped for degenerate samples."""
    if len(values) < 2 or np.ptp(values) == 0:
        return
    try:
        kde = gaussian_kde(values, bw_method="scott")
    except np.linalg.LinAlgError:
        return
    x_range = np.linspace(values.min(), values.max(), 200)
    fig.add_trace(
        go.Scatter(
            x=x_range,
            y=kde(x_range),
            name=name,
            line=dict(color=color, width=2),
            hoverinfo="skip",
        )
    )


# ---------------------------------------------------------------------------
# Return distributions
# ---------------------------------------------------------------------------

def plot_moic_distribution(
    results: MonteCarloResults,
    threshold: Optional[float] = 3.0,
    title: str = "Net LP MOIC Distribution",
) -> go.Figure:
    """
    Density histogram of net MOIC with KDE overlay, median and threshold lines.

    Parameters
    ----------
    results:
        Output of run_monte_carlo().
    threshold:
        Draw a vertical line and annotate P(net MOIC ≥ threshold). None to skip.
    title:
        Chart title.

    Returns
    -------
    go.Figure
    """
    moic = results.summary["lp_moic_net"].dropna().to_numpy()
    fig = go.Figure()
    if len(moic) == 0:
        return _apply_vc_theme(fig)

    fig.add_trace(
        go.Histogram(
            x=moic,
            nbinsx=60,
            name="Simulated funds",
            marker_color=_VC_COLORS["accent"],
            opacity=0.7,
            histnorm="probability density",
            hovertemplate="Net MOIC: %{x:.2f}<br>Density: %{y:.4f}<extra></extra>",
        )
    )
    _add_kde(fig, moic, _VC_COLORS["neutral"])

    median = float(np.median(moic))
    fig.add_vline(
        x=median,
        line_dash="dash",
        line_color=_VC_COLORS["positive"],
        annotation_text=f"Median: {median:.2f}x",
        annotation_position="top right",
    )

    if threshold is not None:
        prob = results.prob_moic_at_least(threshold)
        fig.add_vline(
            x=threshold,
            line_dash="dot",
            line_color=_VC_COLORS["negative"],
            annotation_text=f"P(≥{threshold:g}x) = {prob:.3f}",
            annotation_position="top left",
        )

    fig.update_layout(
        title=title,
        xaxis_title="Net MOIC",
        yaxis_title="Density",
        bargap=0.02,
    )
    return _apply_vc_theme(fig)


def plot_irr_distribution(
    results: MonteCarloResults,
    title: str = "Net LP IRR Distribution",
) -> go.Figure:
    """Histogram of net IRR over the trials where it is defined."""
    irr = results.defined_irr("lp_irr_net").to_numpy()

    fig = go.Figure()
    fig.add_trace(
        go.Histogram(
            x=irr,
            nbinsx=60,
            name="Simulated funds",
            marker_color=_VC_COLORS["accent"],
            opacity=0.7,
            hovertemplate="Net IRR: %{x:.1%}<br>Count: %{y}<extra></extra>",
        )
    )
    fig.add_vline(
        x=0.0,
        line_dash="dot",
        line_color=_VC_COLORS["negative"],
        annotation_text="0%",
        annotation_position="top left",
    )
    fig.update_layout(
        title=title,
        xaxis_title="Net IRR",
        yaxis_title="Frequency",
        xaxis_tickformat=".0%",
        bargap=0.02,
    )
    return _apply_vc_theme(fig)


def plot_survival_curve(
    results: MonteCarloResults,
    thresholds: Sequence[float] = (1.5, 2.0, 3.0, 5.0),
    title: str = "Probability of Achieving At Least X Net MOIC",
) -> go.Figure:
    """
    Survival function P(net MOIC ≥ x), with markers at ``thresholds``.
    """
    moic = np.sort(results.summary["lp_moic_net"].dropna().to_numpy())
    n = len(moic)
    fig = go.Figure()
    if n == 0:
        return _apply_vc_theme(fig)

    # Share of trials at or above each sorted value
    survival = 1.0 - np.arange(n) / n
    fig.add_trace(
        go.Scatter(
            x=moic,
            y=survival,
            name="P(Net MOIC ≥ x)",
            line=dict(color=_VC_COLORS["negative"], width=3, shape="hv"),
            hovertemplate="x = %{x:.2f}<br>P = %{y:.3f}<extra></extra>",
        )
    )

    table = results.survival_table(thresholds)
    fig.add_trace(
        go.Scatter(
            x=table["moic_threshold"],
            y=table["prob_net_moic_ge"],
            mode="markers+text",
            name="Thresholds",
            marker=dict(color=_VC_COLORS["neutral"], size=10, symbol="diamond"),
            text=[f"{p:.2f}" for p in table["prob_net_moic_ge"]],
            textposition="top right",
        )
    )

    fig.update_layout(
        title=title,
        xaxis_title="Net MOIC",
        yaxis_title="P(Net MOIC ≥ X)",
        yaxis_range=[0, 1.05],
    )
    return _apply_vc_theme(fig)


# ---------------------------------------------------------------------------
# J-curve
# ---------------------------------------------------------------------------

def plot_jcurve_fan(
    summary: pd.DataFrame,
    title: str = "VC Fund J-Curve (LP Net Cash Flows)",
) -> go.Figure:
    """
    Fan chart of cumulative net LP cash flow by year.

    Parameters
    ----------
    summary:
        Output of JCurve.summary() / MonteCarloResults.jcurve_summary().
    title:
        Chart title.

    Returns
    -------
    go.Figure
    """
    years = summary["year"]
    fig = go.Figure()

    bands = [
        ("p10_cum", "p90_cum", "P10–P90", "rgba(88, 166, 255, 0.15)"),
        ("p25_cum", "p75_cum", "P25–P75", "rgba(88, 166, 255, 0.35)"),
    ]
    for low, high, name, fill in bands:
        fig.add_trace(
            go.Scatter(
                x=years,
                y=summary[high],
                line=dict(width=0),
                showlegend=False,
                hoverinfo="skip",
            )
        )
        fig.add_trace(
            go.Scatter(
                x=years,
                y=summary[low],
                fill="tonexty",
                fillcolor=fill,
                line=dict(width=0),
                name=name,
                hoverinfo="skip",
            )
        )

    fig.add_trace(
        go.Scatter(
            x=years,
            y=summary["median_cum"],
            name="Median",
            line=dict(color=_VC_COLORS["text"], width=3),
            hovertemplate="Year %{x}<br>Median: $%{y:,.0f}<extra></extra>",
        )
    )
    fig.add_hline(y=0.0, line_dash="dot", line_color=_VC_COLORS["text_secondary"])

    fig.update_layout(
        title=title,
        xaxis_title="Year",
        yaxis_title="Cumulative net cash flow to LPs ($)",
        hovermode="x unified",
    )
    return _apply_vc_theme(fig)


# ---------------------------------------------------------------------------
# Single-trial cash flows
# ---------------------------------------------------------------------------

def plot_fund_cash_flows(
    result: SimulationResult,
    show_cumulative: bool = True,
    title: str = "Simulated Fund Cash Flows",
) -> go.Figure:
    """
    Bar chart of one trial's yearly calls, fees and distributions, with an
    optional cumulative net LP cash flow line on a secondary y-axis.
    """
    df = result.cash_flow_table()

    fig = make_subplots(specs=[[{"secondary_y": True}]])

    fig.add_trace(
        go.Bar(
            x=df["year"],
            y=-df["capital_called"],
            name="Capital Calls",
            marker_color=_VC_COLORS["negative"],
            opacity=0.8,
            customdata=df["capital_called"],
            hovertemplate="Year %{x}<br>Capital Called: $%{customdata:,.0f}<extra></extra>",
        ),
        secondary_y=False,
    )
    fig.add_trace(
        go.Bar(
            x=df["year"],
            y=-df["fees"],
            name="Mgmt Fees",
            marker_color=_VC_COLORS["neutral"],
            opacity=0.7,
            customdata=df["fees"],
            hovertemplate="Year %{x}<br>Fees: $%{customdata:,.0f}<extra></extra>",
        ),
        secondary_y=False,
    )
    fig.add_trace(
        go.Bar(
            x=df["year"],
            y=df["distributions"],
            name="Distributions",
            marker_color=_VC_COLORS["positive"],
            opacity=0.8,
            hovertemplate="Year %{x}<br>Distributions: $%{y:,.0f}<extra></extra>",
        ),
        secondary_y=False,
    )
    if result.gp_carry > 0:
        fig.add_trace(
            go.Bar(
                x=df["year"],
                y=-df["gp_cf"],
                name="GP Carry",
                marker_color=_VC_COLORS["text_secondary"],
                opacity=0.8,
                customdata=df["gp_cf"],
                hovertemplate="Year %{x}<br>Carry: $%{customdata:,.0f}<extra></extra>",
            ),
            secondary_y=False,
        )

    if show_cumulative:
        fig.add_trace(
            go.Scatter(
                x=df["year"],
                y=df["cumulative_net"],
                name="Cumulative Net CF",
                line=dict(color=_VC_COLORS["accent"], width=2),
                mode="lines+markers",
                marker=dict(size=4),
                hovertemplate="Year %{x}<br>Cumulative: $%{y:,.0f}<extra></extra>",
            ),
            secondary_y=True,
        )

    fig.update_layout(
        title=title,
        barmode="relative",
        xaxis_title="Year",
        hovermode="x unified",
    )
    fig.update_yaxes(title_text="Cash Flow ($)", secondary_y=False)
    fig.update_yaxes(title_text="Cumulative Net CF ($)", secondary_y=True)

    return _apply_vc_theme(fig)


# ---------------------------------------------------------------------------
# Strategy comparison
# ---------------------------------------------------------------------------

def plot_strategy_comparison(
    trials: pd.DataFrame,
    metric: str = "lp_moic_net",
    x_max: Optional[float] = 10.0,
    title: str = "Net LP MOIC Distribution by Portfolio Size",
) -> go.Figure:
    """
    Overlaid density curves of a metric, one per strategy.

    Parameters
    ----------
    trials:
        Output of run_strategies().
    metric:
        Summary column to plot ('lp_moic_net' or 'lp_irr_net').
    x_max:
        Upper limit of the x axis. None for automatic.
    title:
        Chart title.
    """
    fig = go.Figure()
    for i, (strategy, group) in enumerate(trials.groupby("strategy", sort=False)):
        values = group[metric].dropna().to_numpy()
        color = _STRATEGY_PALETTE[i % len(_STRATEGY_PALETTE)]
        _add_kde(fig, values, color, name=str(strategy))

    label = "Net MOIC" if metric == "lp_moic_net" else "Net IRR"
    fig.update_layout(
        title=title,
        xaxis_title=label,
        yaxis_title="Density",
    )
    if x_max is not None:
        fig.update_xaxes(range=[0, x_max])
    return _apply_vc_theme(fig)
