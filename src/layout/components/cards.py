"""
src/layout/components/cards.py
──────────────────────────────
KPI and live parameter cards.
"""
from __future__ import annotations

from dash import html

from config.simulation import Channel
from src.analytics.thresholds import get_value_color

CARD_BG = "#161b22"
BORDER = "#30363d"
MUTED = "#8b949e"

STATUS_COLORS: dict[str, str] = {
    "running": "#2ea44f",
    "idle": "#8b949e",
    "fault": "#da3633",
    "maintenance": "#e8a020",
    "stopped": "#30363d",
}


def kpi_card(label: str, value: str, color: str = "#c9d1d9", border_color: str = BORDER) -> html.Div:
    """Compact fleet-level KPI."""
    return html.Div(
        [
            html.Div(label, style={"fontSize": ".68rem", "color": MUTED, "textTransform": "uppercase", "letterSpacing": ".06em"}),
            html.Div(value, style={"fontSize": "1.4rem", "fontWeight": "700", "color": color, "lineHeight": "1.2", "marginTop": "2px"}),
        ],
        style={
            "backgroundColor": CARD_BG,
            "border": f"1px solid {border_color}",
            "borderRadius": "8px",
            "padding": "14px 16px",
        },
    )


def parameter_card(channel: Channel, value: float | None, previous: float | None = None) -> html.Div:
    """
    Live value of one channel with a trend arrow against the previous reading.

    Args:
        channel: Channel definition (label, unit, display bands)
        value: Current value, None when the system is not running
        previous: Prior value for the trend arrow
    """
    if value is None:
        shown, color, arrow = "—", MUTED, ""
    else:
        shown = f"{value:.{channel.decimals}f}"
        color = get_value_color(value, channel)
        arrow = ""
        if previous is not None:
            arrow = "▲" if value > previous else "▼" if value < previous else "▬"

    return html.Div(
        [
            html.Div(channel.label, style={"fontSize": ".68rem", "color": MUTED, "textTransform": "uppercase"}),
            html.Div(
                [
                    html.Span(shown, style={"fontSize": "1.3rem", "fontWeight": "700", "color": color}),
                    html.Span(f" {channel.unit}", style={"fontSize": ".75rem", "color": MUTED}),
                    html.Span(f"  {arrow}", style={"fontSize": ".7rem", "color": MUTED}),
                ]
            ),
        ],
        style={
            "backgroundColor": CARD_BG,
            "border": f"1px solid {BORDER}",
            "borderRadius": "8px",
            "padding": "12px 14px",
        },
    )


def status_pill(status: str) -> html.Span:
    color = STATUS_COLORS.get(status, MUTED)
    return html.Span(
        status.upper(),
        style={
            "fontSize": ".65rem",
            "fontWeight": "700",
            "color": color,
            "border": f"1px solid {color}",
            "borderRadius": "10px",
            "padding": "1px 8px",
        },
    )
