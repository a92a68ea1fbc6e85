"""
Primitivas de dinero y porcentajes en aritmética decimal fija

Nunca se usa float para montos: toda entrada se convierte a Decimal a partir
de su representación en texto, y el redondeo a la unidad mínima de la moneda
se hace con ROUND_HALF_UP (redondeo comercial).
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from docflow.core.config import settings
from docflow.core.exceptions import ValidationError

ZERO = Decimal('0')
ONE = Decimal('1')
HUNDRED = Decimal('100')


def to_decimal(value: Any, field: str = "valor") -> Decimal:
    """
    Convertir un valor de entrada a Decimal

    Args:
        value: int, str, float o Decimal
        field: Nombre del campo para el mensaje de error

    Returns:
        Decimal finito equivalente

    Raises:
        ValidationError: si el valor no es numérico o no es finito
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} debe ser numérico")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} debe ser numérico, se recibió {value!r}")
    if not result.is_finite():
        raise ValidationError(f"{field} debe ser un número finito")
    return result


def quantize_money(amount: Decimal, places: Optional[int] = None) -> Decimal:
    """Redondear a la unidad mínima de la moneda (2 decimales para USD)"""
    quantum = settings.money_quantum if places is None else Decimal(1).scaleb(-places)
    return to_decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)


def quantize_quantity(quantity: Decimal) -> Decimal:
    """Redondear cantidades de inventario derivadas (ej. reversiones proporcionales)"""
    return to_decimal(quantity).quantize(settings.quantity_quantum, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """Porción `percent`% de `amount`, sin redondear"""
    return amount * percent / HUNDRED


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    total = ZERO
    for amount in amounts:
        total += amount
    return total
