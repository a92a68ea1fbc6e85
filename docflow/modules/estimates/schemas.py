from datetime import date
from enum import Enum
from typing import Literal, Optional

from pydantic import Field

from docflow.modules.lifecycle.schemas import DocumentFamily, FinancialDocument


class EstimateStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    CONVERTED = "converted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    VOID = "void"


class EstimateEvent(str, Enum):
    SEND = "send"
    VIEW = "view"
    ACCEPT = "accept"
    CONVERT = "convert"
    REJECT = "reject"
    EXPIRE = "expire"
    VOID = "void"
    DELETE = "delete"
    EDIT = "edit"


class Estimate(FinancialDocument):
    """Cotización; al convertirse, `linked_document_id` apunta a la factura generada"""
    family: Literal[DocumentFamily.ESTIMATE] = DocumentFamily.ESTIMATE
    status: EstimateStatus = EstimateStatus.DRAFT
    expiration_date: Optional[date] = Field(None, description="Fecha límite de validez de la cotización")
