"""
Condiciones de pago y fechas derivadas
"""

from datetime import date, timedelta
from typing import Optional

from docflow.core.config import settings
from docflow.modules.calculations.schemas import PaymentTerms


PAYMENT_TERMS_DAYS = {
    PaymentTerms.DUE_ON_RECEIPT: 0,
    PaymentTerms.NET_10: 10,
    PaymentTerms.NET_15: 15,
    PaymentTerms.NET_30: 30,
    PaymentTerms.NET_45: 45,
    PaymentTerms.NET_60: 60,
    PaymentTerms.NET_90: 90,
}


def due_date_for(issue_date: date, payment_terms: PaymentTerms) -> Optional[date]:
    """
    Fecha de vencimiento según condiciones de pago

    CUSTOM no tiene fecha derivada: el llamador debe indicarla.
    """
    days = PAYMENT_TERMS_DAYS.get(PaymentTerms(payment_terms))
    if days is None:
        return None
    return issue_date + timedelta(days=days)


def default_expiration_date(issue_date: date) -> date:
    """Vencimiento por defecto de una cotización enviada sin fecha de expiración"""
    return issue_date + timedelta(days=settings.ESTIMATE_VALIDITY_DAYS)
