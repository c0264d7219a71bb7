"""
Pricing - quote and invoice totals.

One reduction is shared by job quotes and client invoices:

    subtotal -> discount -> tax -> grand total

All arithmetic uses Decimal and rounds half-up to pennies.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional, Any

from validators import to_decimal

PENNY = Decimal('0.01')
ZERO = Decimal('0.00')


def money(value: Any) -> Decimal:
    """Coerce a value to a Decimal rounded to 2 dp (half-up). None becomes 0."""
    number = to_decimal(value)
    if number is None:
        return ZERO
    return number.quantize(PENNY, rounding=ROUND_HALF_UP)


def line_total(quantity: Any, unit_price: Any) -> Decimal:
    """
    quantity x unit_price, rounded to 2 dp.

    Both inputs are first rounded to the 2 dp they are stored at, so a saved
    line always satisfies line_total = quantity x unit_price.
    """
    return (money(quantity) * money(unit_price)).quantize(PENNY, rounding=ROUND_HALF_UP)


def discount_amount(subtotal: Decimal, discount_type: Optional[str], discount_value: Any) -> Decimal:
    """
    Compute the discount for a subtotal.

    percentage -> subtotal x value / 100; fixed -> value. The discount never
    exceeds the subtotal, so totals cannot go negative.
    """
    value = to_decimal(discount_value)
    if not discount_type or value is None or value <= 0:
        return ZERO

    if discount_type == 'percentage':
        amount = subtotal * value / Decimal('100')
    elif discount_type == 'fixed':
        amount = value
    else:
        return ZERO

    return min(amount, subtotal).quantize(PENNY, rounding=ROUND_HALF_UP)


def calculate_totals(line_totals: Iterable[Any], discount_type: Optional[str] = None,
                     discount_value: Any = None, tax_enabled: bool = False,
                     tax_rate: Any = None) -> Dict[str, Decimal]:
    """
    Reduce line totals to quote/invoice totals.

    Returns:
        Dict with subtotal, discount_amount, after_discount, tax_amount, grand_total
    """
    subtotal = sum((money(t) for t in line_totals), ZERO)
    discount = discount_amount(subtotal, discount_type, discount_value)
    after_discount = subtotal - discount

    tax = ZERO
    rate = to_decimal(tax_rate)
    if tax_enabled and rate:
        tax = (after_discount * rate / Decimal('100')).quantize(PENNY, rounding=ROUND_HALF_UP)

    return {
        'subtotal': subtotal,
        'discount_amount': discount,
        'after_discount': after_discount,
        'tax_amount': tax,
        'grand_total': after_discount + tax,
    }


def totals_for_job(job) -> Dict[str, Decimal]:
    """Totals for a job's quote items using the job's discount and tax settings."""
    return calculate_totals(
        (item.line_total for item in job.quote_items),
        discount_type=job.discount_type,
        discount_value=job.discount_value,
        tax_enabled=bool(job.tax_enabled),
        tax_rate=job.tax_rate,
    )


def serialize_totals(totals: Dict[str, Decimal]) -> Dict[str, float]:
    """Convert a totals dict to JSON-friendly floats."""
    return {key: float(value) for key, value in totals.items()}
