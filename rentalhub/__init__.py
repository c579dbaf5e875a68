"""
RentalHub API: rental listings owned by authenticated hosts.
"""

__version__ = "1.0.0"
