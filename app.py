"""
app.py
──────
Electrolyzer Monitor — Application Entry Point.

Startup sequence:
  1. Configure logging and build store / broadcaster / simulation engine
  2. Create Dash app with DARKLY bootstrap theme and mount the REST API
  3. Register all callbacks
  4. Seed demo systems and start one simulation per active system
  5. Run dev server (or expose `server` for gunicorn in production)
"""
import atexit
import logging

import dash
import dash_bootstrap_components as dbc

from config.settings import settings
from src.api.routes import register_api
from src.layout.main import create_layout
from src.services import create_services
from src.simulation.bootstrap import initialize_demo_systems
from src.utils.logging_config import setup_logging

# ── 1. Services ───────────────────────────────────────────────────────────────
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("app")

services = create_services(settings)
atexit.register(services.shutdown)

# ── 2. Dash app ───────────────────────────────────────────────────────────────
app = dash.Dash(
    __name__,
    external_stylesheets=[dbc.themes.DARKLY],
    suppress_callback_exceptions=True,
    meta_tags=[{"name": "viewport", "content": "width=device-width, initial-scale=1"}],
    title="Electrolyzer Monitor",
)

server = app.server  # gunicorn entry point
app.layout = create_layout(settings.UPDATE_INTERVAL_MS)
register_api(server, services)

# ── 3. Register callbacks ─────────────────────────────────────────────────────
from src.callbacks import alerts, navigation, trends

navigation.register(app, services)
alerts.register(app, services)
trends.register(app, services)

# ── 4. Start simulations ──────────────────────────────────────────────────────
started = initialize_demo_systems(
    services.store,
    services.engine,
    settings.SIMULATION_INTERVAL_MS,
    seed_demo=settings.SEED_DEMO_SYSTEMS,
)
logger.info("Monitoring %d systems", len(started))

# ── 5. Run ────────────────────────────────────────────────────────────────────
if __name__ == "__main__":
    # The reloader would start a second engine in the child process
    app.run(
        debug=settings.DEBUG,
        host=settings.HOST,
        port=settings.PORT,
        use_reloader=False,
    )
