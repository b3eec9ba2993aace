"""Web layer for the gateway's page routes.

Login/logout handling, the catch-all session gate, and the static content
proxy that serves the application's assets to authenticated sessions.
"""
