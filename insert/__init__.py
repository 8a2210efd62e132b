"""
InSert place recommendation backend.

Responsibilities:
- Serve venue-based place recommendations over HTTP.
- Keep demo users and per-session state for the web client.
"""
