"""
Módulo de Numeración sugerida de documentos (BILL-0001, INV-0001, ...)
"""

from .schemas import DocumentSequence, NextNumberOut
from .service import NumberingService, next_number, parse_number, sequence_for

__all__ = [
    "DocumentSequence", "NextNumberOut",
    "NumberingService", "next_number", "parse_number", "sequence_for",
]
