"""
Módulo de Notas crédito
"""

from .schemas import CreditNote, CreditNoteEvent, CreditNoteStatus
from .workflow import credit_note_machine

__all__ = ["CreditNote", "CreditNoteEvent", "CreditNoteStatus", "credit_note_machine"]
