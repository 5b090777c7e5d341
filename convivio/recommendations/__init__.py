"""
Personalised meal recommender.

Responsibilities:
- Score each nearby meal against a user's preference vector and location.
- Blend the sub-scores with fixed weights and explain the top factors.
- Rank, truncate and label results, degrading to a distance-only ranking
  when personalisation cannot be computed.
"""
