"""
Salon Scheduling API

Remote collaborators consumed by the scheduling core.

Structure:
    api/
    ├── __init__.py              # This file
    ├── client.py                # SalonApi contract + httpx SalonApiClient
    ├── envelopes.py             # One response adapter per remote call
    └── shared/                  # Shared utilities
        ├── __init__.py
        └── validators.py        # Input validators

Usage:
    from salon_scheduling.api import SalonApiClient

    with SalonApiClient(base_url="https://salon.example/api", token=token) as api:
        slots = generate_slots(api, employee_id, "2026-01-20", 30)
"""

from .client import SalonApi, SalonApiClient
from . import shared

__all__ = [
    "SalonApi",
    "SalonApiClient",
    "shared",
]
