"""
src/layout/components/alert_badge.py
──────────────────────────────────────
Alert severity badge and live alert banner.
"""

from dash import html

from config.alerts import SEVERITY_COLORS, SEVERITY_LABELS

MUTED = "#8b949e"


def alert_badge(severity: str) -> html.Span:
    """Inline severity badge with color-coded border."""
    color = SEVERITY_COLORS.get(severity, MUTED)
    label = SEVERITY_LABELS.get(severity, severity.capitalize())

    return html.Span(
        label,
        style={
            "fontSize": ".65rem",
            "fontWeight": "700",
            "color": color,
            "border": f"1px solid {color}",
            "borderRadius": "4px",
            "padding": "1px 7px",
            "whiteSpace": "nowrap",
        },
    )


def alert_banner(alert: dict, system_name: str) -> html.Div:
    """One pushed alert (camelCase payload) as a banner row."""
    severity = alert.get("severity", "low")
    color = SEVERITY_COLORS.get(severity, MUTED)
    return html.Div(
        [
            alert_badge(severity),
            html.Span(system_name, style={"color": "#58a6ff", "fontWeight": "600", "fontSize": ".8rem", "margin": "0 8px"}),
            html.Span(alert.get("message", ""), style={"fontSize": ".78rem", "color": "#c9d1d9"}),
            html.Span(
                str(alert.get("createdAt", ""))[11:19],
                style={"fontSize": ".7rem", "color": MUTED, "marginLeft": "auto"},
            ),
        ],
        style={
            "display": "flex",
            "alignItems": "center",
            "borderLeft": f"3px solid {color}",
            "backgroundColor": "rgba(255,255,255,0.02)",
            "padding": "6px 10px",
            "marginBottom": "4px",
            "borderRadius": "4px",
        },
    )
