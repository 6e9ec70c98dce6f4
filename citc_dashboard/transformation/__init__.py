"""
Transformation Layer - Pure, Deterministic Functions

This layer contains all business logic for turning upstream records into
dashboard cards.
- Pure functions (input → output)
- No I/O operations
- Unit testable
- Tolerant of the upstream's inconsistent field naming
"""
