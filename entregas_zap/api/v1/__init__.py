"""API v1 routers"""
from . import (
    auth,
    condominiums,
    deliveries,
    employees,
    messages,
    pickups,
    reminders,
    residents,
    sessions,
)

__all__ = [
    "auth",
    "condominiums",
    "deliveries",
    "employees",
    "messages",
    "pickups",
    "reminders",
    "residents",
    "sessions",
]
