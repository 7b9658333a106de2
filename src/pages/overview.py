"""
src/pages/overview.py
──────────────────────
Live overview page.

Static structure; dynamic data injected via callbacks.
"""

import dash_bootstrap_components as dbc
from dash import dcc, html

MUTED = "#8b949e"


def layout() -> html.Div:
    return html.Div(
        [
            # ── Page header ───────────────────────────────────────────────────
            html.Div(
                [
                    html.H2("Fleet Overview", className="page-title"),
                    html.P(
                        "Real-time telemetry from simulated alkaline electrolysis units",
                        className="page-subtitle",
                    ),
                ],
                className="page-header",
            ),
            # ── Fleet KPI banner (dynamic) ────────────────────────────────────
            html.Div(id="overview-kpi-banner", className="mb-4"),
            # ── System status cards (dynamic) ─────────────────────────────────
            html.Div(id="overview-system-cards", className="mb-4"),
            # ── Selected system detail ────────────────────────────────────────
            dbc.Row(
                [
                    dbc.Col(
                        [
                            html.Label("System", style={"fontSize": ".72rem", "color": MUTED, "textTransform": "uppercase"}),
                            dcc.Dropdown(id="overview-system", clearable=False, className="dark-dropdown"),
                        ],
                        md=4,
                    ),
                    dbc.Col(
                        html.Div(
                            [
                                html.Span(id="overview-simulation-state", style={"marginRight": "12px"}),
                                dbc.Button("Start", id="overview-start-btn", size="sm", color="success", outline=True, className="me-2"),
                                dbc.Button("Stop", id="overview-stop-btn", size="sm", color="danger", outline=True),
                                html.Span(id="overview-simulation-feedback", style={"fontSize": ".72rem", "color": MUTED, "marginLeft": "12px"}),
                            ],
                            style={"paddingTop": "22px", "display": "flex", "alignItems": "center"},
                        ),
                        md=8,
                    ),
                ],
                className="g-3 mb-3",
            ),
            html.Div(id="overview-parameter-cards", className="mb-3"),
            html.Div(id="overview-gauges", className="mb-3"),
            # ── Live alert feed ───────────────────────────────────────────────
            dbc.Row(
                [
                    dbc.Col(
                        html.Div(
                            [
                                html.Div("Live Alerts", className="chart-title"),
                                html.Div(id="overview-live-alerts"),
                            ],
                            className="chart-card",
                        ),
                        md=6,
                    ),
                    dbc.Col(
                        html.Div(
                            [
                                html.Div("Active Alerts", className="chart-title"),
                                html.Div(id="overview-alerts-table"),
                            ],
                            className="chart-card",
                        ),
                        md=6,
                    ),
                ],
                className="g-3",
            ),
        ],
        style={"padding": "1.5rem"},
    )
