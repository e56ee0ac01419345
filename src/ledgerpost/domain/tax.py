"""Indian GST and TDS arithmetic.

Rounding rule used throughout the ledger: every tax component is rounded
individually, half-up, to two decimal places. Document totals are the sum of
the already-rounded components, so generated entries balance exactly.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ledgerpost.domain.entities import GSTDetails, GSTType, TDSDetails, ZERO
from ledgerpost.domain.errors import ValidationError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

NO_PAN_TDS_RATE = Decimal("20")

PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")


def round_money(amount: Decimal) -> Decimal:
    """Round an amount half-up to two decimal places."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_gst(subtotal: Decimal, rate: Decimal, gst_type: GSTType) -> GSTDetails:
    """Split GST on a subtotal into its components.

    Args:
        subtotal: Taxable value
        rate: Total GST rate in percent (e.g. 18)
        gst_type: Intra-state (CGST + SGST) or inter-state (IGST)

    Returns:
        GSTDetails with each component rounded on its own

    Raises:
        ValidationError: If subtotal or rate is negative
    """
    subtotal = Decimal(subtotal)
    rate = Decimal(rate)
    if subtotal < 0:
        raise ValidationError("Subtotal cannot be negative")
    if rate < 0:
        raise ValidationError("GST rate cannot be negative")

    if gst_type is GSTType.INTRA_STATE:
        half = round_money(subtotal * rate / 2 / HUNDRED)
        return GSTDetails(gst_type=gst_type, cgst_amount=half, sgst_amount=half)
    return GSTDetails(gst_type=gst_type, igst_amount=round_money(subtotal * rate / HUNDRED))


@dataclass(frozen=True)
class TDSSection:
    """Income Tax Act section with its rate and annual threshold."""

    section: str
    description: str
    rate: Decimal
    threshold: Decimal


TDS_SECTIONS: dict[str, TDSSection] = {
    section.section: section
    for section in (
        TDSSection("194", "Dividend", Decimal("10"), Decimal("5000")),
        TDSSection("194A", "Interest other than on securities", Decimal("10"), Decimal("40000")),
        TDSSection("194B", "Lottery or crossword puzzle winnings", Decimal("30"), Decimal("10000")),
        TDSSection("194C", "Payment to contractors", Decimal("1"), Decimal("30000")),
        TDSSection("194H", "Commission or brokerage", Decimal("5"), Decimal("15000")),
        TDSSection("194I", "Rent", Decimal("10"), Decimal("240000")),
        TDSSection("194IA", "Transfer of immovable property", Decimal("1"), Decimal("5000000")),
        TDSSection("194J", "Professional/technical services", Decimal("10"), Decimal("30000")),
        TDSSection("194K", "Income in respect of mutual fund units", Decimal("10"), Decimal("0")),
    )
}

COMMON_TDS_SECTIONS = ("194C", "194J", "194I", "194H", "194A")


@dataclass(frozen=True)
class TDSCalculation:
    """Result of a TDS computation."""

    section: str
    gross_amount: Decimal
    tds_rate: Decimal
    tds_amount: Decimal
    pan_number: Optional[str]

    @property
    def net_payable(self) -> Decimal:
        return calculate_net_payable(self.gross_amount, self.tds_amount)

    def to_details(self) -> TDSDetails:
        return TDSDetails(section=self.section, amount=self.tds_amount)


def get_tds_section_info(section: str) -> TDSSection:
    """Look up a TDS section, raising ValidationError if unknown."""
    info = TDS_SECTIONS.get(section)
    if info is None:
        raise ValidationError(f"Invalid TDS section: {section}")
    return info


def get_all_tds_sections() -> list[TDSSection]:
    """Return all known TDS sections in table order."""
    return list(TDS_SECTIONS.values())


def is_tds_applicable(section: str, amount: Decimal) -> bool:
    """Check whether an amount reaches a section's threshold."""
    info = TDS_SECTIONS.get(section)
    if info is None:
        return False
    return Decimal(amount) >= info.threshold


def is_valid_pan(pan: Optional[str]) -> bool:
    """Validate a Permanent Account Number (AAAAA9999A)."""
    if not pan:
        return False
    return PAN_PATTERN.match(pan) is not None


def calculate_tds(
    amount: Decimal,
    section: str,
    pan_number: Optional[str] = None,
    is_senior_citizen: bool = False,
) -> TDSCalculation:
    """Compute tax to withhold on a payment.

    Without a PAN the flat no-PAN rate applies. Senior citizens are exempt
    under section 194A.
    """
    info = get_tds_section_info(section)
    if not pan_number:
        rate = NO_PAN_TDS_RATE
    elif section == "194A" and is_senior_citizen:
        rate = ZERO
    else:
        rate = info.rate

    amount = Decimal(amount)
    return TDSCalculation(
        section=section,
        gross_amount=amount,
        tds_rate=rate,
        tds_amount=round_money(amount * rate / HUNDRED),
        pan_number=pan_number or None,
    )


def calculate_net_payable(amount: Decimal, tds_amount: Decimal) -> Decimal:
    """Amount payable after withholding, rounded to two places."""
    return round_money(Decimal(amount) - Decimal(tds_amount))
