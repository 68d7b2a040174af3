"""
Enums for domain models.
Enums provide type safety and clarity. Validation for categorical fields.
"""

import enum


class Cadence(str, enum.Enum):
    """How much time one uploaded spreadsheet covers."""

    MONTHLY = "monthly"
    DAILY = "daily"


class TransferStatus(str, enum.Enum):
    """Payout ledger states."""

    ENVIADO = "enviado"
    PENDENTE = "pendente"
    NAO_ENVIADO = "nao_enviado"


class CanonicalField(str, enum.Enum):
    """Fixed set of data points a sales-export row may carry."""

    SALE_DATE = "sale_date"
    SALE_TIME = "sale_time"
    MERCHANT_NAME = "merchant_name"
    TAX_ID = "tax_id"
    PAYMENT_METHOD = "payment_method"
    INSTALLMENT_COUNT = "installment_count"
    CARD_BRAND = "card_brand"
    GROSS_AMOUNT = "gross_amount"
    SALE_STATUS = "sale_status"
    SETTLEMENT_TYPE = "settlement_type"
    SETTLEMENT_DATE = "settlement_date"
    DEVICE_ID = "device_id"
    NET_AMOUNT = "net_amount"
    FEE_AMOUNT = "fee_amount"
    SALE_COUNT = "sale_count"


class EventTopic(str, enum.Enum):
    """Change-notification topics."""

    DOCUMENT_UPDATED = "document_updated"
    OVERRIDE_UPDATED = "override_updated"
