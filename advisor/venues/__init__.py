"""
Venue layer.

Responsibilities:
- Load the canonical venue table and answer city / id lookups.
- Measure great-circle distance between participants and venues.
- Filter the venue pool by distance and score it against group preferences.
"""
