"""
Meal store for the recommender.

Responsibilities:
- Hold the canonical meal table in memory, seeded from CSV.
- Answer nearby-meal lookups for a centre point and radius.
- Provide the visit-history and popularity counts used for novelty scoring.
"""
