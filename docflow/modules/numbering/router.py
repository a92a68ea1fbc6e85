from fastapi import APIRouter

from docflow.modules.lifecycle.schemas import DocumentFamily
from docflow.modules.numbering.schemas import NextNumberOut, ObserveRequest, SequenceOut
from docflow.modules.numbering.service import NumberingService

numbering_router = APIRouter(prefix="/numbering", tags=["Numbering"])

numbering_service = NumberingService()


@numbering_router.get("/{family}/next", response_model=NextNumberOut)
def get_next_number(family: DocumentFamily):
    """
    Siguiente número sugerido para la familia

    Es solo para mostrar en el formulario: el servidor asigna el definitivo.
    """
    return numbering_service.next_number(family)


@numbering_router.post("/{family}/observe", response_model=SequenceOut)
def observe_number(family: DocumentFamily, data: ObserveRequest):
    """Registrar un número ya confirmado por el servidor"""
    accepted = numbering_service.observe(family, data.number)
    sequence = numbering_service.get_sequence(family)
    return SequenceOut(**sequence.model_dump(), accepted=accepted)
