"""Enumerations for taxcompare."""

from enum import StrEnum


class FilingStatus(StrEnum):
    SINGLE = "single"
    MFJ = "mfj"
    MFS = "mfs"
    HOH = "hoh"


class RuleKind(StrEnum):
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    DEDUCTION = "deduction"
    CREDIT = "credit"


class RuleStatus(StrEnum):
    OK = "ok"
    NEEDS_DETAIL = "needs_detail"


class StartingPointType(StrEnum):
    FEDERAL_AGI = "federalAGI"
    FEDERAL_TAXABLE_INCOME = "federalTaxableIncome"
    STATE_DEFINED = "stateDefined"


class TaxType(StrEnum):
    NONE = "none"
    FLAT = "flat"
    PROGRESSIVE = "progressive"


class BusinessType(StrEnum):
    NON_SSTB = "nonSstb"
    SSTB = "sstb"


class PaymentStrategy(StrEnum):
    SAFE_HARBOR = "safeHarbor"
    CURRENT_YEAR = "currentYear"


class Winner(StrEnum):
    W2 = "W2"
    CONTRACTOR = "1099"
