"""Tax-year constant models.

One ``TaxYearConstants`` instance per supported year. Optional premium
blocks (QBI, NIIT, CTC, EITC, itemized caps, state credits) may be absent;
calculators that need them degrade to zero with a note.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from taxcompare.exceptions import ConfigurationError, MissingBracketsError
from taxcompare.models.enums import FilingStatus, TaxType


class _Constants(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class Bracket(_Constants):
    """One progressive slice. ``up_to=None`` marks the unbounded top bracket."""

    up_to: Decimal | None = None
    rate: Decimal


def _check_bracket_order(brackets: list[Bracket]) -> list[Bracket]:
    """Caps must ascend and only the last bracket may be unbounded."""
    if not brackets:
        return brackets
    *bounded, top = brackets
    previous = None
    for bracket in bounded:
        if bracket.up_to is None:
            raise ValueError("only the last bracket may have upTo=null")
        if previous is not None and bracket.up_to <= previous:
            raise ValueError(
                f"bracket caps must be strictly ascending, got {bracket.up_to} after {previous}"
            )
        previous = bracket.up_to
    if top.up_to is not None:
        raise ValueError("the last bracket must have upTo=null")
    return brackets


BracketList = Annotated[list[Bracket], AfterValidator(_check_bracket_order)]


class TaxSchedule(_Constants):
    """A resolved flat rate or bracket list for one filing status."""

    tax_type: TaxType
    rate: Decimal | None = None
    brackets: BracketList = Field(default_factory=list)


class TaxTable(_Constants):
    """Flat rate or per-status brackets for one jurisdiction and year."""

    tax_type: TaxType = TaxType.PROGRESSIVE
    flat_rate: Decimal | None = None
    brackets: dict[FilingStatus, BracketList] = Field(default_factory=dict)

    def schedule_for(
        self, filing_status: FilingStatus, jurisdiction: str, year: int
    ) -> TaxSchedule:
        if self.tax_type == TaxType.NONE:
            return TaxSchedule(tax_type=TaxType.NONE)
        if self.tax_type == TaxType.FLAT:
            if self.flat_rate is None:
                raise MissingBracketsError(jurisdiction, year, filing_status)
            return TaxSchedule(tax_type=TaxType.FLAT, rate=self.flat_rate)

        brackets = self.brackets.get(filing_status)
        if not brackets:
            raise MissingBracketsError(jurisdiction, year, filing_status)
        return TaxSchedule(tax_type=TaxType.PROGRESSIVE, brackets=brackets)


class SeTaxConstants(_Constants):
    ss_wage_base: Decimal
    se_net_earnings_factor: Decimal = Decimal("0.9235")
    ss_rate: Decimal = Decimal("0.124")
    medicare_rate: Decimal = Decimal("0.029")
    additional_medicare_rate: Decimal = Decimal("0.009")
    additional_medicare_threshold: dict[FilingStatus, Decimal] = Field(default_factory=dict)

    def threshold_for(self, filing_status: FilingStatus) -> Decimal:
        threshold = self.additional_medicare_threshold.get(filing_status)
        if threshold is None:
            raise ConfigurationError(
                f"Missing additionalMedicareThreshold for {filing_status}"
            )
        return threshold


class FicaConstants(_Constants):
    """Employee-side payroll rates (wage base and threshold come from SeTaxConstants)."""

    ss_rate: Decimal = Decimal("0.062")
    medicare_rate: Decimal = Decimal("0.0145")


class QbiConstants(_Constants):
    rate: Decimal = Decimal("0.20")
    threshold: dict[FilingStatus, Decimal] = Field(default_factory=dict)
    phaseout_range: dict[FilingStatus, Decimal] | None = None


class NiitConstants(_Constants):
    rate: Decimal = Decimal("0.038")
    threshold: dict[FilingStatus, Decimal] = Field(default_factory=dict)


class CtcConstants(_Constants):
    per_qualifying_child: Decimal
    per_other_dependent: Decimal = Decimal("0")
    max_refundable_per_child: Decimal = Decimal("0")
    phaseout_start: dict[FilingStatus, Decimal] = Field(default_factory=dict)
    phaseout_step: Decimal = Decimal("1000")
    phaseout_amount_per_step: Decimal = Decimal("50")


class EitcRow(_Constants):
    phase_in_rate: Decimal | None = None
    max_credit: Decimal
    phase_out_start: Decimal
    phase_out_rate: Decimal


class EitcConstants(_Constants):
    """EITC table keyed ``"<filing_status>_<kids>"`` with kids capped at 3."""

    investment_income_limit: Decimal
    table: dict[str, EitcRow] = Field(default_factory=dict)

    def row(self, filing_status: FilingStatus, children: int) -> EitcRow | None:
        kids = min(3, max(0, int(children)))
        return self.table.get(f"{filing_status}_{kids}")


class ItemizedConstants(_Constants):
    salt_cap: Decimal


class YoungChildCredit(_Constants):
    amount: Decimal
    income_limit: Decimal = Decimal("0")


class StateCreditConstants(_Constants):
    """State earned-income style credits, table keyed by kids ``"0"``..``"3"``."""

    eitc_table: dict[str, EitcRow] = Field(default_factory=dict)
    young_child_credit: YoungChildCredit | None = None

    def row(self, children: int) -> EitcRow | None:
        return self.eitc_table.get(str(min(3, max(0, int(children)))))


class TaxYearConstants(_Constants):
    year: int
    brackets: dict[FilingStatus, BracketList]
    standard_deduction: dict[FilingStatus, Decimal]
    se_tax: SeTaxConstants
    fica: FicaConstants = Field(default_factory=FicaConstants)
    qbi: QbiConstants | None = None
    niit: NiitConstants | None = None
    ctc: CtcConstants | None = None
    eitc: EitcConstants | None = None
    itemized: ItemizedConstants | None = None
    state_credits: dict[str, StateCreditConstants] = Field(default_factory=dict)

    def brackets_for(self, filing_status: FilingStatus) -> TaxSchedule:
        brackets = self.brackets.get(filing_status)
        if not brackets:
            raise MissingBracketsError("federal", self.year, filing_status)
        return TaxSchedule(tax_type=TaxType.PROGRESSIVE, brackets=brackets)

    def standard_deduction_for(self, filing_status: FilingStatus) -> Decimal:
        deduction = self.standard_deduction.get(filing_status)
        if deduction is None:
            raise ConfigurationError(
                f"No federal standard deduction for {self.year}/{filing_status}"
            )
        return deduction
