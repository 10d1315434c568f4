"""
Sitebook - Source Package

Bookkeeping for a single construction project: fund injections,
site expenses, labour attendance and payroll, and partner contributions.

DESIGN PRINCIPLES:
1. Records are the only source of truth
2. Every derived number is recomputed from the full record set
3. One definition of the implicit-income rule
4. Remote sheets are a mirror, never authoritative
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Sitebook Team"
