"""
Efectos secundarios de las transiciones

Las transiciones no tocan inventario, contabilidad ni saldos de terceros:
devuelven descriptores que el llamador ejecuta exactamente una vez, en orden,
después de persistir el nuevo estado.
"""

from pydantic import BaseModel, ConfigDict, Field
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from docflow.common.money import ONE, ZERO, quantize_money, quantize_quantity


class AdjustInventory(BaseModel):
    """Movimiento de existencias de un producto (positivo entra, negativo sale)"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["adjust_inventory"] = "adjust_inventory"
    line_ref: UUID
    product_id: Optional[UUID] = None
    delta: Decimal


class PostJournalEntry(BaseModel):
    """Asiento contable de partida doble"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["post_journal_entry"] = "post_journal_entry"
    debit_account: str
    credit_account: str
    amount: Decimal
    memo: str = ""


class UpdateCounterpartyBalance(BaseModel):
    """Variación del saldo con un proveedor o cliente"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["update_counterparty_balance"] = "update_counterparty_balance"
    counterparty_id: Optional[UUID] = None
    delta: Decimal


SideEffect = Annotated[
    Union[AdjustInventory, PostJournalEntry, UpdateCounterpartyBalance],
    Field(discriminator="kind")
]


def inventory_adjustments(line_items, direction: int, fraction: Decimal = ONE) -> List[AdjustInventory]:
    """
    Un ajuste por cada línea de inventario

    Args:
        line_items: Líneas del documento
        direction: +1 entrada de existencias, -1 salida
        fraction: Porción de la cantidad a mover (reversiones proporcionales)
    """
    adjustments = []
    for item in line_items:
        if not item.is_inventory:
            continue
        delta = quantize_quantity(item.quantity * fraction) * direction
        if delta == ZERO:
            continue
        adjustments.append(AdjustInventory(line_ref=item.id, product_id=item.product_id, delta=delta))
    return adjustments


def journal_entry(debit_account: str, credit_account: str, amount: Decimal, memo: str = "") -> List[PostJournalEntry]:
    amount = quantize_money(amount)
    if amount == ZERO:
        return []
    return [PostJournalEntry(debit_account=debit_account, credit_account=credit_account, amount=amount, memo=memo)]


def balance_update(counterparty_id: Optional[UUID], delta: Decimal) -> List[UpdateCounterpartyBalance]:
    delta = quantize_money(delta)
    if delta == ZERO:
        return []
    return [UpdateCounterpartyBalance(counterparty_id=counterparty_id, delta=delta)]


def outstanding_fraction(outstanding: Decimal, total: Decimal) -> Decimal:
    """Proporción del documento que sigue abierta; un documento en cero se revierte completo"""
    if total <= ZERO:
        return ONE
    return outstanding / total
