from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict
from decimal import Decimal
from pydantic import field_validator

class Settings(BaseSettings):
    # Moneda y precisión
    CURRENCY_CODE: str = 'USD'
    CURRENCY_DECIMAL_PLACES: int = 2
    QUANTITY_DECIMAL_PLACES: int = 4

    # Documentos
    ESTIMATE_VALIDITY_DAYS: int = 30
    DEFAULT_MILEAGE_RATE: Decimal = Decimal('0.655')

    # Numeración sugerida (el backend asigna el número definitivo)
    NUMBER_PADDING: int = 4
    NUMBER_PREFIXES: Dict[str, str] = {
        "BILL": "BILL",
        "INVOICE": "INV",
        "CREDIT_NOTE": "CN",
        "DEBIT_NOTE": "DN",
        "ESTIMATE": "EST",
        "EXPENSE": "EXP",
    }

    # Cuentas contables por defecto para los asientos solicitados
    CASH_ACCOUNT: str = '1000'
    ACCOUNTS_RECEIVABLE_ACCOUNT: str = '1200'
    ACCOUNTS_PAYABLE_ACCOUNT: str = '2000'
    SALES_ACCOUNT: str = '4000'
    SALES_RETURNS_ACCOUNT: str = '4100'
    PURCHASES_ACCOUNT: str = '5000'
    PURCHASE_RETURNS_ACCOUNT: str = '5100'
    EXPENSE_ACCOUNT: str = '6000'

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def money_quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.CURRENCY_DECIMAL_PLACES)

    @property
    def quantity_quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.QUANTITY_DECIMAL_PLACES)

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("CURRENCY_DECIMAL_PLACES", "QUANTITY_DECIMAL_PLACES")
    @classmethod
    def validate_places(cls, v):
        if v < 0 or v > 8:
            raise ValueError('La precisión decimal debe estar entre 0 y 8')
        return v

settings = Settings()
