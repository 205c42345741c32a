"""appjson: staged app.json configuration and lifecycle scripts for deploys."""

__version__ = "0.1.0"
