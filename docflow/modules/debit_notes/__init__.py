"""
Módulo de Notas débito
"""

from .schemas import DebitNote, DebitNoteEvent, DebitNoteStatus
from .workflow import debit_note_machine

__all__ = ["DebitNote", "DebitNoteEvent", "DebitNoteStatus", "debit_note_machine"]
