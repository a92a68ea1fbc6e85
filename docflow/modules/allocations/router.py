from fastapi import APIRouter, HTTPException

from docflow.core.exceptions import DocflowError
from docflow.modules.allocations.schemas import AllocationOut, AllocationRequest
from docflow.modules.allocations.service import allocate
from docflow.modules.calculations.schemas import WarningOut

allocations_router = APIRouter(prefix="/allocations", tags=["Allocations"])


@allocations_router.post("/", response_model=AllocationOut)
def allocate_credit(data: AllocationRequest):
    """
    Validar un lote de aplicación de crédito

    El lote se acepta completo o se rechaza completo. No persiste nada: el
    llamador guarda las aplicaciones devueltas y descuenta el crédito restante.
    """
    try:
        result = allocate(data.remaining_credit, data.proposals, source_id=data.source_id)
        return AllocationOut(
            applications=result.applications,
            total_applied=result.total_applied,
            remaining_credit_before=result.remaining_credit_before,
            remaining_credit_after=result.remaining_credit_after,
            warnings=[WarningOut.from_warning(w) for w in result.warnings]
        )
    except DocflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
