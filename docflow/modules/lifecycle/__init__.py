"""
Módulo de Ciclo de vida de documentos

Máquina de estados genérica que interpreta la tabla de transiciones de cada
familia (bills, invoices, credit_notes, debit_notes, estimates, expenses).
El registro de familias vive en `docflow.modules.lifecycle.service`.
"""

from .effects import AdjustInventory, PostJournalEntry, UpdateCounterpartyBalance
from .machine import Outcome, Rule, StateMachine, rules
from .schemas import (
    DocumentFamily, FinancialDocument, Permissions, TransitionContext, TransitionResult
)

__all__ = [
    "AdjustInventory", "PostJournalEntry", "UpdateCounterpartyBalance",
    "Outcome", "Rule", "StateMachine", "rules",
    "DocumentFamily", "FinancialDocument", "Permissions", "TransitionContext", "TransitionResult",
]
