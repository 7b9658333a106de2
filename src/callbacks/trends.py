"""
src/callbacks/trends.py
────────────────────────
Historical trends page callbacks: chart, threshold overlay, CSV export.
"""
from __future__ import annotations

from datetime import UTC, datetime

import dash_bootstrap_components as dbc
import pandas as pd
import plotly.graph_objects as go
from dash import Input, Output, State, dcc, html, no_update

from config.simulation import CHANNELS, POWER_DECIMALS
from src.services import Services

CARD_BG = "#161b22"
GRID_CLR = "#30363d"
MUTED = "#8b949e"
PLOTLY_TMPL = "plotly_dark"
LINE_COLOR = "#58a6ff"

ROLLING_WINDOW = 10


def _column_for(parameter: str) -> str:
    """DataFrame column holding a wire-named parameter."""
    if parameter == "power":
        return "power"
    return CHANNELS[parameter].attr


def _label_for(parameter: str) -> str:
    if parameter == "power":
        return "Power (W)"
    channel = CHANNELS[parameter]
    return f"{channel.label} ({channel.unit})"


def _decimals_for(parameter: str) -> int:
    return POWER_DECIMALS if parameter == "power" else CHANNELS[parameter].decimals


def _layout(height: int = 340) -> dict:
    return {
        "template": PLOTLY_TMPL,
        "paper_bgcolor": CARD_BG,
        "plot_bgcolor": CARD_BG,
        "margin": {"l": 10, "r": 10, "t": 10, "b": 10},
        "font": {"color": "#c9d1d9", "size": 11},
        "xaxis": {"gridcolor": GRID_CLR},
        "yaxis": {"gridcolor": GRID_CLR},
        "legend": {"bgcolor": "rgba(0,0,0,0)", "font": {"size": 10}},
        "height": height,
        "showlegend": True,
    }


def _stat(value: str, label: str, color: str = "#c9d1d9") -> dbc.Col:
    return dbc.Col(
        html.Div(
            [
                html.Div(value, style={"fontSize": "1.2rem", "fontWeight": "700", "color": color}),
                html.Div(label, style={"fontSize": ".68rem", "color": MUTED, "textTransform": "uppercase"}),
            ],
            style={"backgroundColor": CARD_BG, "border": f"1px solid {GRID_CLR}", "borderRadius": "8px", "padding": "10px 16px"},
        ),
        xs=6, md=3,
    )


def register(app, services: Services) -> None:

    @app.callback(
        [Output("trends-system", "options"), Output("trends-system", "value")],
        Input("url", "pathname"),
        State("store-system", "data"),
    )
    def populate_trend_systems(pathname: str, selected: str | None):
        options = [{"label": s.name, "value": s.id} for s in services.store.get_all_systems()]
        ids = [o["value"] for o in options]
        return options, selected if selected in ids else (ids[0] if ids else None)

    @app.callback(
        [
            Output("trends-main-chart", "figure"),
            Output("trends-summary", "children"),
            Output("trends-chart-title", "children"),
        ],
        [
            Input("trends-system", "value"),
            Input("trends-parameter", "value"),
            Input("trends-window", "value"),
            Input("trends-options", "value"),
            Input("interval-live", "n_intervals"),
        ],
    )
    def update_trends(system_id: str | None, parameter: str, window_hours: int, options: list, n_intervals: int):
        options = options or []
        system = services.store.get_system(system_id) if system_id else None
        label = _label_for(parameter)
        chart_title = f"{system.name} · {label}" if system else label

        df = services.store.readings_frame(system_id, hours=float(window_hours)) if system else pd.DataFrame()
        column = _column_for(parameter)

        if df.empty or column not in df.columns:
            empty = go.Figure()
            empty.update_layout(**_layout())
            return empty, html.Div("No data for this window.", style={"color": MUTED}), chart_title

        fig = go.Figure()
        fig.add_scatter(
            x=df["timestamp"],
            y=df[column],
            mode="lines",
            line={"color": LINE_COLOR, "width": 1.3},
            name=label,
            hovertemplate=f"%{{x|%d/%m %H:%M:%S}}<br>%{{y:.{_decimals_for(parameter)}f}}<extra></extra>",
        )

        if "rolling" in options:
            fig.add_scatter(
                x=df["timestamp"],
                y=df[column].rolling(ROLLING_WINDOW, min_periods=2).mean(),
                mode="lines",
                line={"color": "#c9d1d9", "width": 1, "dash": "dash"},
                name=f"Mean ({ROLLING_WINDOW} pts)",
                opacity=0.7,
            )

        if "thresholds" in options:
            for threshold in services.store.get_alert_thresholds(system_id):
                if threshold.parameter != parameter or not threshold.is_enabled:
                    continue
                if threshold.max_value is not None:
                    fig.add_hline(y=threshold.max_value, line_dash="dash", line_color="#da3633", line_width=1,
                                  annotation_text="Max", annotation_font_color="#da3633", annotation_font_size=9)
                if threshold.min_value is not None:
                    fig.add_hline(y=threshold.min_value, line_dash="dot", line_color="#e8a020", line_width=1,
                                  annotation_text="Min", annotation_font_color="#e8a020", annotation_font_size=9)

        fig.update_layout(**_layout())

        series = df[column]
        decimals = _decimals_for(parameter)
        summary = dbc.Row(
            [
                _stat(f"{series.iloc[-1]:.{decimals}f}", "Latest", LINE_COLOR),
                _stat(f"{series.mean():.{decimals}f}", "Mean"),
                _stat(f"{series.min():.{decimals}f} – {series.max():.{decimals}f}", "Range"),
                _stat(str(len(series)), "Readings", MUTED),
            ],
            className="g-2",
        )
        return fig, summary, chart_title

    @app.callback(
        Output("trends-download", "data"),
        Input("trends-export-btn", "n_clicks"),
        State("trends-system", "value"),
        State("trends-window", "value"),
        prevent_initial_call=True,
    )
    def export_csv(n_clicks: int, system_id: str | None, window_hours: int):
        if not system_id:
            return no_update
        df = services.store.readings_frame(system_id, hours=float(window_hours))
        if df.empty:
            return no_update
        stamp = datetime.now(tz=UTC).strftime("%Y%m%d_%H%M%S")
        return dcc.send_data_frame(df.to_csv, f"readings_{system_id[:8]}_{stamp}.csv", index=False)
