"""
Módulo de Gastos: monto único, gasto dividido o kilometraje, con flujo de aprobación
"""

from .schemas import Expense, ExpenseEvent, ExpenseStatus
from .workflow import expense_machine

__all__ = ["Expense", "ExpenseEvent", "ExpenseStatus", "expense_machine"]
