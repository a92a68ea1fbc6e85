"""
Módulo de Facturas de proveedor (Bills)

ESTADOS:
- draft: Borrador (editable, eliminable, no afecta inventario)
- received: Recibida → entra inventario, sube saldo con el proveedor, asiento compras/CxP
- partially_paid: Pago parcial
- overdue: Vencida con saldo (la marca reconcile)
- paid: Pagada (terminal)
- void: Anulada (terminal, revierte lo pendiente)
"""

from .schemas import Bill, BillEvent, BillStatus
from .workflow import bill_machine

__all__ = ["Bill", "BillEvent", "BillStatus", "bill_machine"]
