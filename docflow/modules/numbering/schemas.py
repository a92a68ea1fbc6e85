from pydantic import BaseModel, Field

from docflow.modules.lifecycle.schemas import DocumentFamily


class DocumentSequence(BaseModel):
    """Secuencia de numeración de una familia; `current_number` es el último número confirmado"""
    family: DocumentFamily
    prefix: str
    padding: int = Field(4, ge=1)
    current_number: int = Field(0, ge=0)

    def format(self, number: int) -> str:
        return f"{self.prefix}-{number:0{self.padding}d}"


class NextNumberOut(BaseModel):
    next_number: str
    prefix: str
    current_sequence: int


class ObserveRequest(BaseModel):
    number: str = Field(..., min_length=1, max_length=50, description="Número asignado por el servidor")


class SequenceOut(BaseModel):
    family: DocumentFamily
    prefix: str
    padding: int
    current_number: int
    accepted: bool = Field(..., description="False si el número no tiene el formato de la familia")
