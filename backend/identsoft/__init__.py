"""iDentSoft practice-management backend.

Multi-tenant clinic core: invoices and payments ledger, appointment booking
and the reference checks that guard both.
"""

__version__ = "0.1.0"
