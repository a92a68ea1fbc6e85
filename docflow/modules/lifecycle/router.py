from fastapi import APIRouter, HTTPException
from typing import List, Optional

from docflow.core.exceptions import DocflowError
from docflow.modules.lifecycle.schemas import (
    DocumentFamily, Permissions, ReconcileRequest, RuleOut, TransitionOut, TransitionRequest
)
from docflow.modules.lifecycle.service import (
    get_machine, parse_document, permissions_for, reconcile, transition
)

lifecycle_router = APIRouter(prefix="/lifecycle", tags=["Lifecycle"])


@lifecycle_router.post("/{family}/transition", response_model=TransitionOut)
def transition_document(family: DocumentFamily, data: TransitionRequest):
    """
    Aplicar un evento a un documento

    Devuelve el nuevo estado, los cambios a persistir y los efectos a ejecutar.
    El documento no se guarda: el llamador persiste el resultado comparando
    `expected_version` para detectar escrituras concurrentes.
    """
    try:
        document = parse_document(family, data.document)
        result = transition(document, data.event, data.context)
        return TransitionOut.from_result(result)
    except DocflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@lifecycle_router.post("/{family}/reconcile", response_model=Optional[TransitionOut])
def reconcile_document(family: DocumentFamily, data: ReconcileRequest):
    """
    Evaluar las transiciones automáticas (vencida, expirada) a una fecha

    Devuelve null si ninguna aplica.
    """
    try:
        document = parse_document(family, data.document)
        result = reconcile(document, data.as_of)
        return TransitionOut.from_result(result) if result is not None else None
    except DocflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@lifecycle_router.get("/{family}/permissions/{status}", response_model=Permissions)
def get_permissions(family: DocumentFamily, status: str):
    """Acciones permitidas en un estado (banderas allow_<evento>)"""
    try:
        return permissions_for(family, status)
    except DocflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@lifecycle_router.get("/{family}/table", response_model=List[RuleOut])
def get_transition_table(family: DocumentFamily):
    """Tabla de transiciones completa de la familia"""
    return [
        RuleOut(
            source=rule.source.value,
            event=rule.event.value,
            targets=[target.value if target is not None else None for target in rule.targets],
            automatic=rule.automatic
        )
        for rule in get_machine(family).table()
    ]
