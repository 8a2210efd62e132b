"""
Place recommendation pipeline.

Responsibilities:
- Deduplicate and classify raw candidate places into ACTIVITY, DINING, CAFE.
- Score candidates against the visitor profile and free-text conditions.
- Guarantee exactly K places per category with backfill search rounds.
- Assemble the greeting-bearing response and keep per-session place details.
"""
