"""
scoring/ - form scoring engine

Modules:
    field_catalog.py      - which field types contribute and how answers are read
    score_aggregator.py   - response set -> total score and per-question scores
    range_resolver.py     - total score -> feedback message, overlap detection
"""
