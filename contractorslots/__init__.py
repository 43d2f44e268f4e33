"""
contractorslots - bookable time slots from contractor availability rules.
"""

__version__ = "0.1.0"
