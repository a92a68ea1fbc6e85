"""
Módulo de Facturas de venta (Invoices)

Espejo de Bills del lado de cuentas por cobrar: enviar la factura descuenta
inventario y registra la venta; las notas crédito aplicadas bajan el saldo.
"""

from .schemas import Invoice, InvoiceEvent, InvoiceStatus
from .workflow import invoice_machine

__all__ = ["Invoice", "InvoiceEvent", "InvoiceStatus", "invoice_machine"]
