"""Entregas ZAP - condominium package delivery dashboard backend"""

__version__ = "0.1.0"
