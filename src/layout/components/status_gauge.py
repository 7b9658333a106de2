"""
src/layout/components/status_gauge.py
──────────────────────────────────────
Channel gauge using a Plotly indicator chart, coloured by the channel's
normal / warning display bands.
"""
from __future__ import annotations

import plotly.graph_objects as go
from dash import dcc

from config.simulation import Channel
from src.analytics.thresholds import get_value_color

CARD_BG = "#161b22"


def _steps(channel: Channel) -> list[dict]:
    lo, hi = channel.display_range
    steps = [{"range": [lo, hi], "color": "rgba(218,54,51,0.12)"}]
    if channel.warning is not None:
        steps.append({"range": [channel.warning.low, channel.warning.high], "color": "rgba(232,160,32,0.12)"})
    if channel.normal is not None:
        steps.append({"range": [channel.normal.low, channel.normal.high], "color": "rgba(46,164,79,0.12)"})
    return steps


def status_gauge(channel: Channel, value: float | None, height: int = 190) -> dcc.Graph:
    lo, hi = channel.display_range
    shown = value if value is not None else lo
    color = get_value_color(shown, channel) if value is not None else "#8b949e"

    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=shown,
        number={"suffix": f" {channel.unit}", "font": {"color": color, "size": 24}},
        title={"text": channel.label, "font": {"color": "#8b949e", "size": 12}},
        gauge={
            "axis": {
                "range": [lo, hi],
                "tickwidth": 1,
                "tickcolor": "#30363d",
                "tickfont": {"color": "#8b949e", "size": 9},
            },
            "bar": {"color": color, "thickness": 0.25},
            "bgcolor": "rgba(0,0,0,0)",
            "borderwidth": 0,
            "steps": _steps(channel),
        },
    ))

    fig.update_layout(
        paper_bgcolor=CARD_BG,
        plot_bgcolor=CARD_BG,
        margin=dict(l=20, r=20, t=40, b=10),
        height=height,
        font=dict(color="#c9d1d9"),
    )

    return dcc.Graph(
        figure=fig,
        config={"displayModeBar": False},
        style={"height": f"{height}px"},
    )
