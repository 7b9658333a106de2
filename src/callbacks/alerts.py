"""
src/callbacks/alerts.py
────────────────────────
Alert management page callbacks.
"""
from __future__ import annotations

import logging

import dash_bootstrap_components as dbc
import pandas as pd
from dash import ALL, Input, Output, State, ctx, html, no_update

from config.alerts import MAX_ALERTS_DISPLAY, SEVERITY_COLORS, SEVERITY_LABELS, SEVERITY_ORDER, AlertSeverity
from src.layout.components.alert_badge import alert_badge
from src.services import Services

logger = logging.getLogger(__name__)

CARD_BG = "#161b22"
BORDER = "#30363d"
MUTED = "#8b949e"


def _build_table(df: pd.DataFrame, names: dict[str, str], resolved_ids: list[str]) -> html.Div:
    if df.empty:
        return html.Div(
            "No alerts for the selected filters.",
            style={"color": MUTED, "padding": "20px", "textAlign": "center"},
        )

    rows = []
    for _, row in df.iterrows():
        is_resolved = row["id"] in resolved_ids or not bool(row["is_active"])
        rows.append(
            html.Tr(
                [
                    html.Td(
                        row["created_at"].strftime("%d/%m %H:%M:%S"),
                        style={"color": MUTED, "fontSize": ".78rem"},
                    ),
                    html.Td(
                        html.Span(
                            names.get(row["system_id"], row["system_id"][:8]),
                            style={"color": "#58a6ff", "fontSize": ".82rem", "fontWeight": "600"},
                        ),
                    ),
                    html.Td(alert_badge(row["severity"])),
                    html.Td(row["parameter"], style={"fontSize": ".78rem", "color": "#c9d1d9"}),
                    html.Td(f"{row['value']:.2f}", style={"fontSize": ".78rem"}),
                    html.Td(f"{row['threshold']:.2f}", style={"fontSize": ".78rem", "color": MUTED}),
                    html.Td(
                        row["message"],
                        style={"fontSize": ".72rem", "color": MUTED, "maxWidth": "280px", "overflow": "hidden", "textOverflow": "ellipsis"},
                    ),
                    html.Td(
                        html.Button(
                            "✓ Resolved" if is_resolved else "Resolve",
                            id={"type": "resolve-btn", "index": row["id"]},
                            n_clicks=0,
                            disabled=is_resolved,
                            style={
                                "fontSize": ".68rem",
                                "fontWeight": "600",
                                "color": "#2ea44f" if is_resolved else "#58a6ff",
                                "background": "transparent",
                                "border": f"1px solid {'#2ea44f' if is_resolved else '#58a6ff'}",
                                "borderRadius": "4px",
                                "padding": "2px 8px",
                                "cursor": "default" if is_resolved else "pointer",
                                "opacity": "0.6" if is_resolved else "1",
                            },
                        )
                    ),
                ],
                style={"borderBottom": f"1px solid {BORDER}"},
            )
        )

    return html.Div(
        html.Table(
            [
                html.Thead(
                    html.Tr(
                        [html.Th(h) for h in ["Time", "System", "Severity", "Parameter", "Value", "Threshold", "Message", "Status"]],
                        style={"color": MUTED, "fontSize": ".68rem", "textTransform": "uppercase"},
                    )
                ),
                html.Tbody(rows),
            ],
            style={"width": "100%", "borderCollapse": "collapse", "fontSize": ".82rem"},
        ),
        style={"overflowX": "auto"},
    )


def register(app, services: Services) -> None:
    store = services.store

    @app.callback(
        Output("alerts-filter-system", "options"),
        Input("url", "pathname"),
    )
    def populate_system_filter(pathname: str):
        return [{"label": "All", "value": "all"}] + [
            {"label": s.name, "value": s.id} for s in store.get_all_systems()
        ]

    @app.callback(
        [
            Output("alerts-table", "children"),
            Output("alerts-summary-badges", "children"),
        ],
        [
            Input("interval-live", "n_intervals"),
            Input("alerts-filter-severity", "value"),
            Input("alerts-filter-system", "value"),
            Input("alerts-filter-status", "value"),
            Input("store-resolved", "data"),
        ],
    )
    def update_alerts_table(
        n_intervals: int,
        severity_filter: str,
        system_filter: str,
        status_filter: str,
        resolved_ids: list[str],
    ):
        names = {s.id: s.name for s in store.get_all_systems()}
        df = store.alerts_frame(
            system_id=None if system_filter == "all" else system_filter,
            severity=None if severity_filter == "all" else severity_filter,
            active_only=status_filter == "active",
            days=7,
            limit=MAX_ALERTS_DISPLAY * 5,
        )
        if not df.empty:
            df["_sev_order"] = df["severity"].map({k.value: v for k, v in SEVERITY_ORDER.items()}).fillna(0)
            df = df.sort_values(["_sev_order", "created_at"], ascending=[False, False]).head(MAX_ALERTS_DISPLAY)

        severities = (AlertSeverity.CRITICAL, AlertSeverity.HIGH, AlertSeverity.MEDIUM, AlertSeverity.LOW)
        badges = dbc.Row(
            [
                dbc.Col(
                    html.Div(
                        [
                            html.Div(
                                str(store.count_active_alerts(severity=sev.value)),
                                style={"fontSize": "1.4rem", "fontWeight": "700", "color": SEVERITY_COLORS[sev]},
                            ),
                            html.Div(
                                f"Active {SEVERITY_LABELS[sev]}",
                                style={"fontSize": ".65rem", "color": MUTED, "textTransform": "uppercase"},
                            ),
                        ],
                        style={"backgroundColor": CARD_BG, "border": f"1px solid {BORDER}", "borderRadius": "8px", "padding": "10px 16px"},
                    ),
                    xs=6, md=3,
                )
                for sev in severities
            ],
            className="g-2",
        )

        return _build_table(df, names, resolved_ids or []), badges

    @app.callback(
        Output("store-resolved", "data"),
        Input({"type": "resolve-btn", "index": ALL}, "n_clicks"),
        State("store-resolved", "data"),
        prevent_initial_call=True,
    )
    def resolve_alert(n_clicks_list: list, resolved_ids: list[str]) -> list[str]:
        # Re-rendered tables fire this with n_clicks=0
        if not ctx.triggered_id or not ctx.triggered[0]["value"]:
            return no_update
        alert_id = ctx.triggered_id["index"]
        resolved = list(resolved_ids or [])
        if alert_id not in resolved:
            if store.resolve_alert(alert_id):
                logger.info("Alert %s resolved from dashboard", alert_id)
            resolved.append(alert_id)
        return resolved
