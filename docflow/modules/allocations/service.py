"""
Motor de asignación de crédito

Distribuye el crédito restante de una nota crédito (o débito) entre documentos
destino con saldo pendiente. El lote se acepta o se rechaza completo:
- Cada monto solicitado se trunca a min(crédito restante, saldo del destino)
- Los montos en cero se descartan sin error
- Un lote sin montos positivos falla con EmptyAllocationError
- Si la suma supera el crédito restante falla con InsufficientCreditError

El motor vuelve a validar los topes aunque la interfaz ya los haya aplicado:
el saldo puede cambiar entre que se arma la solicitud y se envía.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
from uuid import UUID

from docflow.common.money import ZERO, quantize_money, sum_amounts
from docflow.common.validators import validate_non_negative
from docflow.core.exceptions import (
    ClampedValueWarning, EmptyAllocationError, InsufficientCreditError, ValidationError
)
from docflow.modules.allocations.schemas import (
    AllocationProposal, AllocationResult, CreditApplication
)

logger = logging.getLogger(__name__)


def allocate(
    remaining_credit,
    proposals: Sequence[AllocationProposal],
    source_id: Optional[UUID] = None,
    applied_at: Optional[datetime] = None
) -> AllocationResult:
    """
    Validar y aplicar un lote de asignaciones

    Args:
        remaining_credit: Crédito disponible de la nota
        proposals: Montos propuestos, a lo sumo uno por documento destino
        source_id: Nota de origen, se copia en cada aplicación
        applied_at: Momento de aplicación (por defecto, ahora en UTC)

    Returns:
        AllocationResult con una CreditApplication por propuesta no nula

    Raises:
        ValidationError: montos negativos o destinos repetidos
        EmptyAllocationError: ninguna propuesta positiva
        InsufficientCreditError: la suma excede el crédito restante
    """
    available = quantize_money(validate_non_negative(remaining_credit, "remaining_credit"))

    accepted = []
    warnings = []
    seen_targets = set()

    for position, proposal in enumerate(proposals, start=1):
        if proposal.target_id in seen_targets:
            raise ValidationError(
                f"El documento {proposal.target_id} aparece más de una vez en el lote"
            )
        seen_targets.add(proposal.target_id)

        requested = quantize_money(validate_non_negative(proposal.requested_amount, f"Propuesta {position}: requested_amount"))
        amount_due = quantize_money(validate_non_negative(proposal.amount_due, f"Propuesta {position}: amount_due"))

        cap = min(available, amount_due)
        amount = requested
        if requested > cap:
            warnings.append(ClampedValueWarning(f"proposals[{position}].requested_amount", requested, cap))
            amount = cap

        if amount > ZERO:
            accepted.append((proposal, amount))

    if not accepted:
        raise EmptyAllocationError("El lote no contiene ningún monto a aplicar")

    total_applied = sum_amounts(amount for _, amount in accepted)
    if total_applied > available:
        logger.info(f"Lote rechazado: total {total_applied} excede crédito disponible {available}")
        raise InsufficientCreditError(total_applied, available)

    for warning in warnings:
        logger.warning(f"Asignación truncada: {warning.message}")

    extra = {"applied_at": applied_at} if applied_at is not None else {}
    applications = [
        CreditApplication(source_id=source_id, target_id=proposal.target_id, amount=amount, **extra)
        for proposal, amount in accepted
    ]

    logger.info(
        f"Crédito aplicado desde {source_id}: {total_applied} en {len(applications)} documento(s), "
        f"restante {available - total_applied}"
    )

    return AllocationResult(
        applications=applications,
        total_applied=total_applied,
        remaining_credit_before=available,
        remaining_credit_after=available - total_applied,
        warnings=warnings
    )


def status_after_allocation(remaining_after: Decimal, partial_status, full_status):
    """Estado de la nota tras aplicar: parcial si queda crédito, completo si no"""
    return partial_status if remaining_after > ZERO else full_status
