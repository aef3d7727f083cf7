"""
salonslots - bookable appointment slots for salon providers.
"""

__version__ = "0.1.0"
