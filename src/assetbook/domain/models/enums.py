"""Enumerations for domain models."""

from enum import Enum


class InstrumentType(str, Enum):
    """Kinds of portfolio instruments."""

    STOCK = "stock"
    FUND = "fund"
    GOLD = "gold"  # variant carried in the symbol, see GoldVariant
    USD_CASH = "usd_cash"
    EUR_CASH = "eur_cash"
    CRYPTO = "crypto"
    DEPOSIT = "deposit"  # quantity holds the monetary principal

    @property
    def label(self) -> str:
        """Human-readable category name."""
        return INSTRUMENT_LABELS[self]

    @property
    def quantity_is_principal(self) -> bool:
        """True when `quantity` is money rather than a unit count."""
        return QUANTITY_IS_PRINCIPAL[self]


# Per-member tables. Adding an InstrumentType member requires an entry in each;
# tests/unit/test_domain_models.py checks coverage.
INSTRUMENT_LABELS: dict[InstrumentType, str] = {
    InstrumentType.STOCK: "Stocks",
    InstrumentType.FUND: "Funds",
    InstrumentType.GOLD: "Gold",
    InstrumentType.USD_CASH: "US Dollar",
    InstrumentType.EUR_CASH: "Euro",
    InstrumentType.CRYPTO: "Crypto",
    InstrumentType.DEPOSIT: "Time Deposits",
}

QUANTITY_IS_PRINCIPAL: dict[InstrumentType, bool] = {
    InstrumentType.STOCK: False,
    InstrumentType.FUND: False,
    InstrumentType.GOLD: False,
    InstrumentType.USD_CASH: False,
    InstrumentType.EUR_CASH: False,
    InstrumentType.CRYPTO: False,
    InstrumentType.DEPOSIT: True,
}


class GoldVariant(str, Enum):
    """Physical and paper gold variants used as GOLD symbols."""

    GRAM = "GRAM"
    OUNCE = "ONS"
    FULL_COIN = "TAM"
    HALF_COIN = "YARIM"
    QUARTER_COIN = "CEYREK"
    REPUBLIC_COIN = "CUMHURIYET"
    RESAT_COIN = "RESAT"
    BANGLE_22K = "BILEZIK22"
    GOLD_18K = "ALTIN18"
    GOLD_14K = "ALTIN14"


class AccrualStatus(str, Enum):
    """Outcome of one accrual attempt."""

    APPLIED = "APPLIED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


class SkipReason(str, Enum):
    """Why an accrual attempt did not change the item."""

    MISSING_METADATA = "MISSING_METADATA"
    MATURED = "MATURED"
    NON_POSITIVE_INTEREST = "NON_POSITIVE_INTEREST"
    ALREADY_ACCRUED_TODAY = "ALREADY_ACCRUED_TODAY"
    INACTIVE = "INACTIVE"


class NotificationEvent(str, Enum):
    """Event types sent to the notification collaborator."""

    DAILY_RETURN_APPLIED = "dailyReturnApplied"
    MATURITY_WARNING = "maturityWarning"
    ACCRUAL_STARTED = "accrualStarted"
    ACCRUAL_SKIPPED = "accrualSkipped"
    ACCRUAL_ERROR = "accrualError"
    ACCRUAL_STOPPED = "accrualStopped"
    DEPOSIT_INFO_UPDATED = "depositInfoUpdated"


class RecommendationType(str, Enum):
    """Kind of advice produced by portfolio analysis."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"
    DIVERSIFY = "diversify"
    WARNING = "warning"
