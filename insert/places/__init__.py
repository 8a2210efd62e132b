"""
Places search gateway.

Responsibilities:
- Resolve a venue name to coordinates (keyword search, query variations,
  known-venue table).
- Search nearby places per category through the Kakao Local REST API.
- Map provider documents into candidate places.
"""
