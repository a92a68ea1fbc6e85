"""
Taxonomía de errores del motor de documentos

Todas las operaciones de cálculo y transición son totales sobre entradas bien
formadas y solo lanzan las categorías definidas aquí. Cada error conoce el
código HTTP con el que los routers lo exponen.

ClampedValueWarning no se lanza nunca: se devuelve en la lista `warnings`
de los resultados para que el llamador lo muestre sin abortar la operación.
"""

from decimal import Decimal
from typing import Optional


class DocflowError(Exception):
    """Error base del motor"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DocflowError):
    """Entrada mal formada: cantidad no positiva, porcentaje fuera de rango, etc."""
    status_code = 422


class InvalidTransitionError(DocflowError):
    """Par (estado, evento) no definido en la tabla de transiciones"""
    status_code = 409

    def __init__(self, family: str, status: Optional[str], event: str, message: Optional[str] = None):
        self.family = family
        self.status = status
        self.event = event
        super().__init__(
            message or f"Transición inválida para {family}: '{event}' no está permitido desde '{status}'"
        )


class StaleDocumentError(DocflowError):
    """La versión leída por el llamador ya no coincide con la del documento"""
    status_code = 409

    def __init__(self, expected_version: int, current_version: int):
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"El documento fue modificado: versión esperada {expected_version}, versión actual {current_version}"
        )


class InsufficientCreditError(DocflowError):
    """El lote de aplicación supera el crédito disponible; no se aplica nada"""
    status_code = 422

    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(
            f"El total a aplicar ({requested}) excede el crédito disponible ({available})"
        )


class EmptyAllocationError(DocflowError):
    """El lote no contiene ninguna aplicación con monto positivo"""
    status_code = 422


class ClampedValueWarning(UserWarning):
    """
    Aviso no fatal: un valor superó su tope y fue truncado

    Args:
        field: Campo afectado (ej. 'discount_value', 'refund_amount')
        requested: Valor solicitado por el llamador
        applied: Valor efectivamente aplicado
    """

    def __init__(self, field: str, requested: Decimal, applied: Decimal, message: Optional[str] = None):
        self.field = field
        self.requested = requested
        self.applied = applied
        self.message = message or f"{field}: {requested} excede el máximo permitido, se aplicó {applied}"
        super().__init__(self.message)

    def __eq__(self, other):
        if not isinstance(other, ClampedValueWarning):
            return NotImplemented
        return (self.field, self.requested, self.applied) == (other.field, other.requested, other.applied)

    def __hash__(self):
        return hash((self.field, self.requested, self.applied))

    def __repr__(self):
        return f"ClampedValueWarning(field={self.field!r}, requested={self.requested}, applied={self.applied})"
