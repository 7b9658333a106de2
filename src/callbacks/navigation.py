"""
src/callbacks/navigation.py — Routing, navbar and overview page callbacks.
"""
from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import Input, Output, State, ctx, html, no_update

from config.alerts import SEVERITY_COLORS, AlertSeverity
from config.simulation import CHANNELS
from src.data.models import SensorSnapshot
from src.layout.components.alert_badge import alert_badge, alert_banner
from src.layout.components.cards import STATUS_COLORS, kpi_card, parameter_card, status_pill
from src.layout.components.status_gauge import status_gauge
from src.services import Services

CARD_BG = "#161b22"
BORDER = "#30363d"
MUTED = "#8b949e"

_GAUGE_CHANNELS = ("temperature", "pressure", "pH", "efficiency")


def _system_options(services: Services) -> list[dict]:
    return [{"label": s.name, "value": s.id} for s in services.store.get_all_systems()]


def _system_card(services: Services, system_id: str, name: str, latest: SensorSnapshot | None) -> dbc.Col:
    running = services.engine.is_running(system_id)
    status = latest.system_status.value if (running and latest is not None) else "stopped"
    active_count = services.store.count_active_alerts(system_id)
    alert_color = "#da3633" if active_count > 5 else "#e8a020" if active_count > 0 else "#2ea44f"

    def _metric(label: str, value: str, color: str = "#c9d1d9") -> html.Div:
        return html.Div([
            html.Div(label, style={"fontSize": ".65rem", "color": MUTED}),
            html.Div(value, style={"fontSize": ".95rem", "fontWeight": "700", "color": color}),
        ])

    return dbc.Col(
        html.Div(
            [
                html.Div(
                    [
                        html.Span(name, style={"fontWeight": "700", "color": "#58a6ff", "fontSize": ".92rem"}),
                        html.Span(status_pill(status), style={"marginLeft": "auto"}),
                    ],
                    style={"display": "flex", "alignItems": "center", "marginBottom": "10px"},
                ),
                html.Div(
                    [
                        _metric("Power", f"{latest.power:.0f} W" if latest else "—"),
                        _metric("Efficiency", f"{latest.efficiency:.1f}%" if latest else "—"),
                        _metric("H₂ Flow", f"{latest.hydrogen_flow:.1f} L/min" if latest else "—"),
                        _metric("Active Alerts", str(active_count), alert_color),
                    ],
                    style={"display": "grid", "gridTemplateColumns": "1fr 1fr", "gap": "8px"},
                ),
            ],
            style={
                "backgroundColor": CARD_BG,
                "border": f"1px solid {STATUS_COLORS.get(status, BORDER) if status == 'fault' else BORDER}",
                "borderRadius": "8px",
                "padding": "14px",
            },
        ),
        md=4,
    )


def _alerts_table(services: Services, names: dict[str, str]) -> html.Div:
    alerts = services.store.get_active_alerts(limit=8)
    if not alerts:
        return html.Div("No active alerts.", style={"color": MUTED, "padding": "12px"})

    rows = [
        html.Tr([
            html.Td(a.created_at.strftime("%H:%M:%S"), style={"fontSize": ".72rem", "color": MUTED}),
            html.Td(html.Span(names.get(a.system_id, a.system_id[:8]), style={"color": "#58a6ff", "fontSize": ".78rem"})),
            html.Td(alert_badge(a.severity.value)),
            html.Td(a.parameter, style={"fontSize": ".72rem"}),
            html.Td(a.message[:60] + "…" if len(a.message) > 60 else a.message, style={"fontSize": ".70rem", "color": MUTED}),
        ])
        for a in alerts
    ]
    return html.Table(
        [html.Thead(html.Tr([html.Th(h) for h in ["Time", "System", "Severity", "Parameter", "Message"]],
                            style={"color": MUTED, "fontSize": ".65rem", "textTransform": "uppercase"})),
         html.Tbody(rows)],
        style={"width": "100%", "borderCollapse": "collapse", "fontSize": ".8rem"},
    )


def register(app, services: Services) -> None:
    """Register navigation + overview page callbacks."""

    # ── Page routing ──────────────────────────────────────────────────────────
    from src.pages import alerts, overview, trends

    @app.callback(
        Output("page-content", "children"),
        Input("url", "pathname"),
    )
    def display_page(pathname: str):
        routes = {
            "/": overview.layout,
            "/alerts": alerts.layout,
            "/trends": trends.layout,
        }
        return routes.get(pathname, overview.layout)()

    # ── Navbar collapse ───────────────────────────────────────────────────────
    @app.callback(
        Output("navbar-collapse", "is_open"),
        Input("navbar-toggler", "n_clicks"),
        State("navbar-collapse", "is_open"),
        prevent_initial_call=True,
    )
    def toggle_navbar(n_clicks: int, is_open: bool) -> bool:
        return not is_open

    # ── Running-simulations indicator ─────────────────────────────────────────
    @app.callback(
        Output("navbar-live-indicator", "children"),
        Input("interval-live", "n_intervals"),
    )
    def update_live_indicator(n_intervals: int):
        running = len(services.engine.running_systems())
        color = "#2ea44f" if running else MUTED
        return [html.Span("● ", style={"color": color}), f"{running} live"]

    # ── Overview: system selector ─────────────────────────────────────────────
    @app.callback(
        [Output("overview-system", "options"), Output("overview-system", "value")],
        Input("url", "pathname"),
        State("store-system", "data"),
    )
    def populate_overview_systems(pathname: str, selected: str | None):
        options = _system_options(services)
        ids = [o["value"] for o in options]
        value = selected if selected in ids else (ids[0] if ids else None)
        return options, value

    @app.callback(
        Output("store-system", "data"),
        Input("overview-system", "value"),
        prevent_initial_call=True,
    )
    def remember_system(system_id: str | None):
        return system_id if system_id else no_update

    # ── Overview: start / stop ────────────────────────────────────────────────
    @app.callback(
        Output("overview-simulation-feedback", "children"),
        Input("overview-start-btn", "n_clicks"),
        Input("overview-stop-btn", "n_clicks"),
        State("overview-system", "value"),
        prevent_initial_call=True,
    )
    def control_simulation(n_start: int, n_stop: int, system_id: str | None):
        if not system_id:
            return "Select a system first."
        if ctx.triggered_id == "overview-start-btn":
            services.engine.start(system_id, services.settings.SIMULATION_INTERVAL_MS)
            return "Simulation started."
        services.engine.stop(system_id)
        return "Simulation stopped."

    # ── Overview: live content ────────────────────────────────────────────────
    @app.callback(
        [
            Output("overview-kpi-banner", "children"),
            Output("overview-system-cards", "children"),
            Output("overview-simulation-state", "children"),
            Output("overview-parameter-cards", "children"),
            Output("overview-gauges", "children"),
            Output("overview-live-alerts", "children"),
            Output("overview-alerts-table", "children"),
        ],
        Input("interval-live", "n_intervals"),
        Input("overview-system", "value"),
    )
    def update_overview(n_intervals: int, system_id: str | None):
        systems = services.store.get_all_systems()
        names = {s.id: s.name for s in systems}
        engine = services.engine

        # Fleet KPIs
        running = engine.running_systems()
        latest_by_system = {s.id: engine.get_latest_reading(s.id) for s in systems}
        total_power = sum(r.power for r in latest_by_system.values() if r is not None)
        total_h2 = sum(r.hydrogen_flow for r in latest_by_system.values() if r is not None)
        total_alerts = services.store.count_active_alerts()
        total_critical = services.store.count_active_alerts(severity=AlertSeverity.CRITICAL.value)

        kpi_banner = dbc.Row(
            [
                dbc.Col(kpi_card("Running Systems", f"{len(running)} / {len(systems)}", "#58a6ff"), xs=6, md=3),
                dbc.Col(kpi_card("Fleet Power", f"{total_power / 1000:.2f} kW", "#c9d1d9"), xs=6, md=3),
                dbc.Col(kpi_card("H₂ Production", f"{total_h2:.1f} L/min", "#2ea44f"), xs=6, md=3),
                dbc.Col(
                    kpi_card(
                        "Active Alerts",
                        f"{total_alerts} ({total_critical} critical)",
                        SEVERITY_COLORS[AlertSeverity.CRITICAL] if total_critical else "#e8a020" if total_alerts else "#2ea44f",
                        border_color=SEVERITY_COLORS[AlertSeverity.CRITICAL] if total_critical else BORDER,
                    ),
                    xs=6, md=3,
                ),
            ],
            className="g-3",
        )

        system_cards = dbc.Row(
            [_system_card(services, s.id, s.name, latest_by_system[s.id]) for s in systems],
            className="g-3",
        )

        # Selected system
        latest = latest_by_system.get(system_id) if system_id else None
        previous = None
        if system_id:
            history = services.store.get_sensor_readings(system_id, limit=2)
            if latest is None and history:
                latest = history[0]
            if len(history) > 1:
                previous = history[1]

        if system_id and engine.is_running(system_id) and latest is not None:
            state = [status_pill(latest.system_status.value),
                     html.Span(f"  cycle {engine.cycle_position(system_id)}°",
                               style={"fontSize": ".72rem", "color": MUTED})]
        else:
            state = status_pill("stopped")

        parameter_cards = dbc.Row(
            [
                dbc.Col(
                    parameter_card(
                        channel,
                        latest.value_of(key) if latest else None,
                        previous.value_of(key) if previous else None,
                    ),
                    xs=6, md=4, lg=True,
                )
                for key, channel in CHANNELS.items()
            ],
            className="g-2",
        )

        gauges = dbc.Row(
            [
                dbc.Col(
                    html.Div(
                        status_gauge(CHANNELS[key], latest.value_of(key) if latest else None, height=190),
                        className="chart-card",
                    ),
                    xs=6, md=3,
                )
                for key in _GAUGE_CHANNELS
            ],
            className="g-3",
        )

        pushed = services.poll_live_alerts()
        if pushed:
            live_alerts = html.Div(
                [alert_banner(a, names.get(a.get("systemId", ""), "Unknown system")) for a in pushed[:10]]
            )
        else:
            live_alerts = html.Div("Waiting for alerts…", style={"color": MUTED, "padding": "12px"})

        return (
            kpi_banner,
            system_cards,
            state,
            parameter_cards,
            gauges,
            live_alerts,
            _alerts_table(services, names),
        )
