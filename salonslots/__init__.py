"""
salonslots - appointment availability for beauty salons.
"""

__version__ = "0.1.0"
