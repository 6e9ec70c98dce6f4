"""
Orchestration Layer - Workflow Coordination

This layer coordinates the sync workflow.
- Owns retries, concurrency limits and the result cache
- Isolates per-card and per-invoice failures
- Composes extract, transform, and load operations
"""
