"""
Demo authentication.

Responsibilities:
- Keep in-memory demo users with bcrypt password hashes.
- Resolve user ids to display names for recommendation greetings.
- Guard endpoints with session-based dependencies.
"""
