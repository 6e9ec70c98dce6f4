"""
Load Layer - Data Persistence

This layer holds sync results once they are built.
- Process-lifetime result cache with expiry
- Local snapshot files (JSON, Parquet)
- No business logic, just storage operations
"""
