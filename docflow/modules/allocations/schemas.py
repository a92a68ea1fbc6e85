from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID, uuid4
from datetime import datetime, timezone

from docflow.core.exceptions import ClampedValueWarning
from docflow.modules.calculations.schemas import WarningOut


class AllocationProposal(BaseModel):
    """Monto propuesto para aplicar a un documento destino (factura o factura de proveedor)"""
    target_id: UUID = Field(
        ...,
        validation_alias=AliasChoices("target_id", "invoice_id", "bill_id"),
        description="Documento al que se aplica el crédito"
    )
    amount_due: Decimal = Field(..., description="Saldo pendiente del destino")
    requested_amount: Decimal = Field(..., description="Monto solicitado por el usuario")

    model_config = ConfigDict(populate_by_name=True)


class CreditApplication(BaseModel):
    """Registro inmutable de crédito aplicado a un documento destino"""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    source_id: Optional[UUID] = Field(None, description="Nota crédito/débito de origen")
    target_id: UUID
    amount: Decimal
    applied_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AllocationResult(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    applications: List[CreditApplication]
    total_applied: Decimal
    remaining_credit_before: Decimal
    remaining_credit_after: Decimal
    warnings: List[ClampedValueWarning] = Field(default_factory=list)


# ===== REQUEST / RESPONSE =====

class AllocationRequest(BaseModel):
    source_id: Optional[UUID] = None
    remaining_credit: Decimal
    proposals: List[AllocationProposal] = Field(default_factory=list)


class AllocationOut(BaseModel):
    applications: List[CreditApplication]
    total_applied: Decimal
    remaining_credit_before: Decimal
    remaining_credit_after: Decimal
    warnings: List[WarningOut] = Field(default_factory=list)
