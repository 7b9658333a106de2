"""
src/pages/alerts.py
────────────────────
Alert management page with filters and resolution.
"""

import dash_bootstrap_components as dbc
from dash import dcc, html

from config.alerts import SEVERITY_LABELS, AlertSeverity

MUTED = "#8b949e"

_SEVERITY_OPTIONS = [{"label": "All", "value": "all"}] + [
    {"label": SEVERITY_LABELS[s], "value": s.value}
    for s in (AlertSeverity.CRITICAL, AlertSeverity.HIGH, AlertSeverity.MEDIUM, AlertSeverity.LOW)
]

_STATUS_OPTIONS = [
    {"label": "Active", "value": "active"},
    {"label": "All (7 days)", "value": "all"},
]


def _filter(label: str, control) -> dbc.Col:
    return dbc.Col(
        [
            html.Label(label, style={"fontSize": ".72rem", "color": MUTED, "textTransform": "uppercase"}),
            control,
        ],
        md=3,
    )


def layout() -> html.Div:
    return html.Div(
        [
            html.Div(
                [
                    html.H2("Alert Management", className="page-title"),
                    html.P("Threshold violations raised by the simulation engine", className="page-subtitle"),
                ],
                className="page-header",
            ),
            # ── Summary badges ─────────────────────────────────────────────────
            html.Div(id="alerts-summary-badges", className="mb-3"),
            # ── Filter row ─────────────────────────────────────────────────────
            dbc.Row(
                [
                    _filter("Severity", dcc.Dropdown(
                        id="alerts-filter-severity", options=_SEVERITY_OPTIONS, value="all",
                        clearable=False, className="dark-dropdown",
                    )),
                    _filter("System", dcc.Dropdown(
                        id="alerts-filter-system", value="all", clearable=False, className="dark-dropdown",
                    )),
                    _filter("Status", dcc.Dropdown(
                        id="alerts-filter-status", options=_STATUS_OPTIONS, value="active",
                        clearable=False, className="dark-dropdown",
                    )),
                ],
                className="g-3 mb-3",
            ),
            # ── Alert table ────────────────────────────────────────────────────
            html.Div(
                html.Div(id="alerts-table"),
                className="chart-card",
            ),
        ],
        style={"padding": "1.5rem"},
    )
