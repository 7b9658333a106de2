"""
src/pages/trends.py
────────────────────
Historical trend page with threshold overlay and CSV export.
"""
import dash_bootstrap_components as dbc
from dash import dcc, html

from config.simulation import CHANNELS

MUTED = "#8b949e"

_PARAMETER_OPTIONS = [
    {"label": f"{c.label} ({c.unit})", "value": key} for key, c in CHANNELS.items()
] + [{"label": "Power (W)", "value": "power"}]

# Window in hours
WINDOW_OPTIONS = [
    {"label": "Last hour", "value": 1},
    {"label": "Last 6 hours", "value": 6},
    {"label": "Last 24 hours", "value": 24},
    {"label": "Last 7 days", "value": 7 * 24},
]


def _label(text: str) -> html.Label:
    return html.Label(text, style={"fontSize": ".72rem", "color": MUTED, "textTransform": "uppercase"})


def layout() -> html.Div:
    return html.Div(
        [
            html.Div(
                [
                    html.H2("Historical Trends", className="page-title"),
                    html.P("Persisted readings per system and parameter", className="page-subtitle"),
                ],
                className="page-header",
            ),

            # ── Controls ───────────────────────────────────────────────────────
            dbc.Row(
                [
                    dbc.Col([_label("System"), dcc.Dropdown(id="trends-system", clearable=False, className="dark-dropdown")], md=3),
                    dbc.Col(
                        [
                            _label("Parameter"),
                            dcc.Dropdown(
                                id="trends-parameter",
                                options=_PARAMETER_OPTIONS,
                                value="voltage",
                                clearable=False,
                                className="dark-dropdown",
                            ),
                        ],
                        md=3,
                    ),
                    dbc.Col(
                        [
                            _label("Window"),
                            dcc.Dropdown(
                                id="trends-window",
                                options=WINDOW_OPTIONS,
                                value=1,
                                clearable=False,
                                className="dark-dropdown",
                            ),
                        ],
                        md=2,
                    ),
                    dbc.Col(
                        [
                            _label("Options"),
                            dbc.Checklist(
                                id="trends-options",
                                options=[
                                    {"label": " Thresholds", "value": "thresholds"},
                                    {"label": " Rolling mean", "value": "rolling"},
                                ],
                                value=["thresholds"],
                                inline=True,
                                style={"fontSize": ".82rem", "color": "#c9d1d9", "paddingTop": "8px"},
                                inputStyle={"marginRight": "4px"},
                            ),
                        ],
                        md=2,
                    ),
                    dbc.Col(
                        [
                            _label("Export"),
                            html.Div(
                                dbc.Button("Export CSV", id="trends-export-btn", size="sm", color="secondary", outline=True),
                                style={"paddingTop": "4px"},
                            ),
                            dcc.Download(id="trends-download"),
                        ],
                        md=2,
                    ),
                ],
                className="g-3 mb-3",
            ),

            # ── Main trend chart ───────────────────────────────────────────────
            html.Div(
                [
                    html.Div(id="trends-chart-title", className="chart-title"),
                    dcc.Graph(id="trends-main-chart", config={"displayModeBar": True}),
                ],
                className="chart-card mb-3",
            ),
            html.Div(id="trends-summary"),
        ],
        style={"padding": "1.5rem"},
    )
