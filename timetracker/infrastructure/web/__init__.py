"""Web interface: routers, middleware and error templates."""
