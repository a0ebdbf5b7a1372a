"""
ib_valuation - investment-banking style valuation models.

Every model consumes a normalized `CompanyData` snapshot and returns a
freshly computed result dataclass.
"""

__version__ = "0.1.0"
