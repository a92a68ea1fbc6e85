"""
Validadores de montos, cantidades y porcentajes
"""
from decimal import Decimal
from typing import Any

from docflow.common.money import HUNDRED, ZERO, to_decimal
from docflow.core.exceptions import ValidationError


def validate_positive(value: Any, field: str) -> Decimal:
    """
    Valida que el valor sea estrictamente mayor que cero.
    - Se usa para cantidades de línea y montos de pago/reembolso
    - Una cantidad 0 es un error, nunca se convierte silenciosamente en 0
    """
    amount = to_decimal(value, field)
    if amount <= ZERO:
        raise ValidationError(f"{field} debe ser mayor que 0, se recibió {amount}")
    return amount


def validate_non_negative(value: Any, field: str) -> Decimal:
    """
    Valida que el valor sea mayor o igual a cero.
    - Precios unitarios, montos adeudados, descuentos fijos
    """
    amount = to_decimal(value, field)
    if amount < ZERO:
        raise ValidationError(f"{field} no puede ser negativo, se recibió {amount}")
    return amount


def validate_percent(value: Any, field: str) -> Decimal:
    """
    Valida un porcentaje expresado en base 100.
    - Rango cerrado [0, 100]
    - Ejemplo: 8 significa 8%, no 0.08
    """
    if value is None:
        return ZERO
    percent = to_decimal(value, field)
    if percent < ZERO or percent > HUNDRED:
        raise ValidationError(f"{field} debe estar entre 0 y 100, se recibió {percent}")
    return percent


def validate_required_text(value: Any, field: str) -> str:
    """
    Valida un texto obligatorio (ej. motivo de rechazo)
    """
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} es obligatorio")
    return str(value).strip()
