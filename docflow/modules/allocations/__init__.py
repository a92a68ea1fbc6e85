"""
Módulo de Asignación de crédito (notas crédito → facturas, notas débito → facturas de proveedor)
"""

from .schemas import AllocationProposal, CreditApplication, AllocationResult
from .service import allocate, status_after_allocation

__all__ = [
    "AllocationProposal", "CreditApplication", "AllocationResult",
    "allocate", "status_after_allocation",
]
