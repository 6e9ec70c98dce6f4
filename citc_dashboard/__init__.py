"""
CITC Dashboard Sync

Pulls course instances, enrolments and invoices from aXcelerate and
aggregates them into per-location dashboard cards.
"""

__version__ = "0.1.0"
