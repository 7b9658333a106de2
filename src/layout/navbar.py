"""
src/layout/navbar.py
─────────────────────
Navigation bar with page links and the running-simulations indicator.
"""

import dash_bootstrap_components as dbc
from dash import html

NAV_BG = "#0d1117"
BORDER = "#30363d"
ACCENT = "#58a6ff"


def create_navbar() -> dbc.Navbar:
    return dbc.Navbar(
        dbc.Container(
            [
                dbc.NavbarBrand(
                    [
                        html.Span("⚡", style={"marginRight": "8px", "fontSize": "1.1rem"}),
                        html.Span(
                            "Electrolyzer Monitor", style={"fontWeight": "700", "letterSpacing": ".04em"}
                        ),
                    ],
                    href="/",
                    style={"color": ACCENT, "textDecoration": "none"},
                ),
                dbc.NavbarToggler(id="navbar-toggler", n_clicks=0),
                dbc.Collapse(
                    dbc.Nav(
                        [
                            dbc.NavItem(dbc.NavLink("Overview", href="/", id="nav-overview", active="exact")),
                            dbc.NavItem(dbc.NavLink("Trends", href="/trends", id="nav-trends", active="exact")),
                            dbc.NavItem(dbc.NavLink("Alerts", href="/alerts", id="nav-alerts", active="exact")),
                            dbc.NavItem(
                                html.Span(
                                    id="navbar-live-indicator",
                                    style={"fontSize": ".72rem", "color": "#8b949e", "marginLeft": "12px"},
                                )
                            ),
                        ],
                        className="ms-auto",
                        navbar=True,
                        style={"alignItems": "center"},
                    ),
                    id="navbar-collapse",
                    navbar=True,
                    is_open=False,
                ),
            ],
            fluid=True,
        ),
        color=NAV_BG,
        dark=True,
        sticky="top",
        style={"borderBottom": f"1px solid {BORDER}", "padding": ".5rem 1rem"},
    )
