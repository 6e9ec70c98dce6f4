"""
Extract Layer - Pure I/O to the aXcelerate API

This layer handles all upstream data fetching with no business logic.
- No imports from transform or load layers
- Returns raw records (plain dicts) as the API sends them
- Normalises the wrapper shapes the API uses around arrays and invoices
"""
