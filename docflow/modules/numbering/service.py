"""
Numeración sugerida de documentos

El número que se muestra al crear un documento es solo una sugerencia: el
servidor asigna el definitivo al guardar. Consultar el siguiente número no
avanza la secuencia; solo `observe` la actualiza con números ya confirmados.
"""

import logging
import re
import threading
from typing import Dict, Iterable, Optional

from docflow.core.config import settings
from docflow.modules.lifecycle.schemas import DocumentFamily
from docflow.modules.numbering.schemas import DocumentSequence, NextNumberOut

logger = logging.getLogger(__name__)


def sequence_for(family, current_number: int = 0) -> DocumentSequence:
    family = DocumentFamily(family)
    return DocumentSequence(
        family=family,
        prefix=settings.NUMBER_PREFIXES.get(family.value, family.value),
        padding=settings.NUMBER_PADDING,
        current_number=current_number
    )


def parse_number(family, number: str) -> Optional[int]:
    """Parte numérica de `number`, o None si no tiene el formato PREFIJO-NNNN de la familia"""
    prefix = sequence_for(family).prefix
    match = re.fullmatch(rf"{re.escape(prefix)}-(\d+)", number.strip())
    if match is None:
        return None
    return int(match.group(1))


def next_number(family, issued_numbers: Iterable[str] = ()) -> str:
    """
    Siguiente número a partir de los ya emitidos

    Los números con otro formato se ignoran. Sin números previos devuelve el 1.
    """
    highest = 0
    for number in issued_numbers:
        parsed = parse_number(family, number)
        if parsed is not None and parsed > highest:
            highest = parsed
    sequence = sequence_for(family, highest)
    return sequence.format(highest + 1)


class NumberingService:
    """Secuencias en memoria por familia, actualizadas con los números que confirma el servidor"""

    def __init__(self):
        self._sequences: Dict[DocumentFamily, DocumentSequence] = {}
        self._lock = threading.Lock()

    def _sequence(self, family: DocumentFamily) -> DocumentSequence:
        # Requiere self._lock tomado
        if family not in self._sequences:
            self._sequences[family] = sequence_for(family)
        return self._sequences[family]

    def get_sequence(self, family) -> DocumentSequence:
        family = DocumentFamily(family)
        with self._lock:
            return self._sequence(family)

    def next_number(self, family) -> NextNumberOut:
        """Número sugerido; no modifica la secuencia"""
        sequence = self.get_sequence(family)
        upcoming = sequence.current_number + 1
        return NextNumberOut(
            next_number=sequence.format(upcoming),
            prefix=sequence.prefix,
            current_sequence=upcoming
        )

    def observe(self, family, number: str) -> bool:
        """
        Registrar un número confirmado por el servidor

        La lectura, la comparación y el reemplazo ocurren bajo el mismo lock,
        así la secuencia nunca retrocede.

        Returns:
            False si el número no tiene el formato de la familia (se ignora)
        """
        family = DocumentFamily(family)
        parsed = parse_number(family, number)
        if parsed is None:
            logger.warning(f"Número con formato ajeno ignorado para {family.value}: {number!r}")
            return False

        with self._lock:
            sequence = self._sequence(family)
            if parsed > sequence.current_number:
                self._sequences[family] = sequence.model_copy(update={"current_number": parsed})
                logger.info(f"Secuencia {family.value} avanzada a {parsed}")
        return True
