"""
Sale drafts - immutable, fully formed sales ready to be submitted to the ledger.

Drafts are validated when constructed, so the ledger never receives a line
with a zero quantity or a payment without an amount.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Tuple

from pos_ledger.exceptions import ValidationError
from pos_ledger.models import PaymentMethod, normalize_payment_method

CENTS = Decimal('0.01')

# Largest values the Numeric(10, 2) and Integer columns can hold
MAX_AMOUNT = Decimal('99999999.99')
MAX_QUANTITY = 2147483647


def to_decimal(value, field_name: str) -> Decimal:
    """Coerce a number or numeric string to Decimal, or raise ValidationError."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f'{field_name} is required and must be a number')
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field_name} must be a number, got {value!r}')
    if not result.is_finite():
        raise ValidationError(f'{field_name} must be a finite number')
    return result


def to_positive_int(value, field_name: str) -> int:
    """Coerce value to an int > 0, or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be an integer')
    if isinstance(value, int):
        number = value
    else:
        try:
            as_decimal = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f'{field_name} must be an integer, got {value!r}')
        if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value():
            raise ValidationError(f'{field_name} must be an integer, got {value!r}')
        number = int(as_decimal)
    if number <= 0:
        raise ValidationError(f'{field_name} must be greater than 0')
    return number


def to_quantity(value, field_name: str = 'quantity') -> int:
    """Coerce value to a quantity that fits the Integer column."""
    quantity = to_positive_int(value, field_name)
    if quantity > MAX_QUANTITY:
        raise ValidationError(f'{field_name} cannot exceed {MAX_QUANTITY}')
    return quantity


def check_money(amount: Decimal, field_name: str) -> Decimal:
    """Raise ValidationError if amount does not fit a Numeric(10, 2) column."""
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f'{field_name} cannot exceed {MAX_AMOUNT}')
    return amount


def to_money(value, field_name: str) -> Decimal:
    """Coerce value to a Decimal rounded to cents, within column limits."""
    return check_money(to_decimal(value, field_name), field_name).quantize(CENTS)


@dataclass(frozen=True)
class SaleLineDraft:
    """One line of a draft sale: a variant, a quantity and the captured unit price."""
    variant_id: int
    quantity: int
    unit_price: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'variant_id', to_positive_int(self.variant_id, 'variant_id'))
        object.__setattr__(self, 'quantity', to_quantity(self.quantity))
        unit_price = to_money(self.unit_price, 'unit_price')
        if unit_price < 0:
            raise ValidationError('unit_price cannot be negative')
        object.__setattr__(self, 'unit_price', unit_price)
        check_money(self.subtotal, 'subtotal')

    @property
    def subtotal(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENTS)


@dataclass(frozen=True)
class SalePaymentDraft:
    """One payment covering (part of) a draft sale."""
    method: PaymentMethod
    amount: Decimal
    reference: Optional[str] = None

    def __post_init__(self):
        try:
            method = PaymentMethod(normalize_payment_method(self.method))
        except ValueError as e:
            raise ValidationError(str(e))
        object.__setattr__(self, 'method', method)

        amount = to_money(self.amount, 'amount')
        if amount <= 0:
            raise ValidationError('Payment amount must be greater than 0')
        object.__setattr__(self, 'amount', amount)

        if self.reference is not None:
            reference = str(self.reference).strip()
            if len(reference) > 100:
                raise ValidationError('Payment reference cannot exceed 100 characters')
            object.__setattr__(self, 'reference', reference or None)


@dataclass(frozen=True)
class SaleDraft:
    """
    A complete sale before it is persisted.

    ``total`` is derived from the lines; payments are carried as given and
    are not required to add up to the total.
    """
    seller_id: int
    lines: Tuple[SaleLineDraft, ...]
    payments: Tuple[SalePaymentDraft, ...] = field(default_factory=tuple)
    notes: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'seller_id', to_positive_int(self.seller_id, 'seller_id'))

        lines = tuple(self.lines or ())
        if not lines:
            raise ValidationError('A sale needs at least one line')
        for line in lines:
            if not isinstance(line, SaleLineDraft):
                raise ValidationError(f'Invalid sale line: {line!r}')
        object.__setattr__(self, 'lines', lines)
        check_money(self.total, 'total')

        payments = tuple(self.payments or ())
        for payment in payments:
            if not isinstance(payment, SalePaymentDraft):
                raise ValidationError(f'Invalid sale payment: {payment!r}')
        object.__setattr__(self, 'payments', payments)

        if self.notes is not None:
            object.__setattr__(self, 'notes', str(self.notes).strip() or None)

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), Decimal('0.00')).quantize(CENTS)

    @property
    def payments_total(self) -> Decimal:
        return sum((p.amount for p in self.payments), Decimal('0.00')).quantize(CENTS)

    @property
    def is_balanced(self) -> bool:
        return self.payments_total == self.total


def draft_from_payload(payload: Mapping[str, Any]) -> SaleDraft:
    """
    Build a SaleDraft from a JSON-like mapping.

    Expected shape::

        {
            "seller_id": 1,
            "notes": "optional",
            "lines": [{"variant_id": 3, "quantity": 2, "unit_price": "100.00"}],
            "payments": [{"method": "cash", "amount": "200.00", "reference": null}]
        }
    """
    if not isinstance(payload, Mapping):
        raise ValidationError('Sale payload must be an object')

    raw_lines = payload.get('lines') or []
    raw_payments = payload.get('payments') or []
    if not isinstance(raw_lines, list) or not isinstance(raw_payments, list):
        raise ValidationError('lines and payments must be lists')

    lines = []
    for index, raw in enumerate(raw_lines):
        if not isinstance(raw, Mapping):
            raise ValidationError(f'Line {index + 1} must be an object')
        lines.append(SaleLineDraft(
            variant_id=raw.get('variant_id'),
            quantity=raw.get('quantity'),
            unit_price=raw.get('unit_price'),
        ))

    payments = []
    for index, raw in enumerate(raw_payments):
        if not isinstance(raw, Mapping):
            raise ValidationError(f'Payment {index + 1} must be an object')
        payments.append(SalePaymentDraft(
            method=raw.get('method'),
            amount=raw.get('amount'),
            reference=raw.get('reference'),
        ))

    return SaleDraft(
        seller_id=payload.get('seller_id'),
        lines=tuple(lines),
        payments=tuple(payments),
        notes=payload.get('notes'),
    )
