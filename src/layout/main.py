"""
src/layout/main.py
───────────────────
Root layout: routing, client-side stores, the live refresh interval,
navbar, page container and footer.
"""
from dash import dcc, html

from src.layout.navbar import create_navbar

MUTED = "#8b949e"
BORDER = "#30363d"


def _footer(update_interval_ms: int) -> html.Footer:
    parts = [
        "Electrolyzer Monitor",
        "Alkaline electrolysis telemetry (simulated)",
        f"Refresh every {update_interval_ms / 1000:g} s",
    ]
    children: list = []
    for i, text in enumerate(parts):
        if i:
            children.append(html.Span(" · "))
        children.append(html.Span(text))
    return html.Footer(
        children,
        style={
            "textAlign": "center",
            "padding": ".7rem",
            "fontSize": ".72rem",
            "color": MUTED,
            "borderTop": f"1px solid {BORDER}",
            "marginTop": "2rem",
        },
    )


def create_layout(update_interval_ms: int) -> html.Div:
    """Assemble the root application layout."""
    stores = [
        dcc.Store(id="store-system", data=None),    # system selected on overview
        dcc.Store(id="store-resolved", data=[]),    # alert ids resolved from this tab
    ]
    return html.Div(
        [
            *stores,
            dcc.Location(id="url", refresh=False),
            dcc.Interval(id="interval-live", interval=update_interval_ms, n_intervals=0),
            create_navbar(),
            html.Div(id="page-content", style={"minHeight": "calc(100vh - 60px)"}),
            _footer(update_interval_ms),
        ],
        style={"backgroundColor": "#0d1117", "minHeight": "100vh", "color": "#c9d1d9"},
    )
