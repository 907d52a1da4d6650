"""Pricing resolver: turns a device and a page count into revenue and cost.

Each device carries a linear rate (price/cost per page) and may override
either side with a formula written in terms of ``count``, for example::

    count * 0.5
    (count - 100) * 0.3 + 50

Formulas are evaluated by a small recursive-descent parser over ``Decimal``
that knows only numbers, ``+ - * /`` and parentheses. Any formula that is
rejected, fails to parse, divides by zero or yields a non-finite number
falls back to the linear rate.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Protocol

_COUNT_TOKEN = re.compile(r"count", re.IGNORECASE)
_ALLOWED = re.compile(r"^[\d\s+\-*/().]+$")
_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")

CENT = Decimal("0.01")
TENTH = Decimal("0.1")


class FormulaError(ValueError):
    """Raised when a formula cannot be parsed."""


class PricedDevice(Protocol):
    """The pricing columns read from a device."""

    cost_per_page: Decimal
    price_per_page: Decimal
    cost_formula: str | None
    revenue_formula: str | None


@dataclass(frozen=True)
class PriceQuote:
    """Unrounded revenue and cost for a page count."""

    revenue: Decimal
    cost: Decimal


class _Parser:
    """Recursive-descent evaluator for ``expr := term (('+'|'-') term)*``."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def parse(self) -> Decimal:
        value = self._expr()
        self._skip_ws()
        if self.pos != len(self.text):
            raise FormulaError(f"Unexpected '{self.text[self.pos]}' at position {self.pos}")
        return value

    def _skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _peek(self) -> str | None:
        self._skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else None

    def _expr(self) -> Decimal:
        value = self._term()
        while (op := self._peek()) in ("+", "-"):
            self.pos += 1
            rhs = self._term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _term(self) -> Decimal:
        value = self._factor()
        while (op := self._peek()) in ("*", "/"):
            self.pos += 1
            rhs = self._factor()
            value = value * rhs if op == "*" else value / rhs
        return value

    def _factor(self) -> Decimal:
        char = self._peek()
        if char is None:
            raise FormulaError("Unexpected end of formula")
        if char in ("+", "-"):
            self.pos += 1
            operand = self._factor()
            return operand if char == "+" else -operand
        if char == "(":
            self.pos += 1
            value = self._expr()
            if self._peek() != ")":
                raise FormulaError("Missing closing parenthesis")
            self.pos += 1
            return value
        match = _NUMBER.match(self.text, self.pos)
        if not match:
            raise FormulaError(f"Unexpected '{char}' at position {self.pos}")
        self.pos = match.end()
        return Decimal(match.group())


def _substitute(formula: str, count: int | Decimal) -> str:
    expression = _COUNT_TOKEN.sub(str(count), formula)
    if not _ALLOWED.match(expression):
        raise FormulaError("Formula may only contain numbers, count, + - * / and parentheses")
    return expression


def evaluate_formula(formula: str, count: int | Decimal) -> Decimal:
    """Evaluate a formula for a page count.

    Raises:
        FormulaError: disallowed characters or malformed syntax
        ArithmeticError: division by zero and other Decimal failures
    """
    value = _Parser(_substitute(formula, count)).parse()
    if not value.is_finite():
        raise FormulaError("Formula did not produce a finite number")
    return value


def validate_formula(formula: str) -> None:
    """Check that a formula is well formed, independent of the page count."""
    try:
        evaluate_formula(formula, 1)
    except ArithmeticError:
        # Syntactically fine; division by zero is handled by the fallback
        pass


def resolve_amount(formula: str | None, count: int, rate: Decimal) -> Decimal:
    """Price ``count`` pages with a formula, falling back to ``count * rate``."""
    default = Decimal(count) * Decimal(rate)
    if not formula:
        return default
    try:
        return evaluate_formula(formula, count)
    except (FormulaError, ArithmeticError, InvalidOperation):
        return default


def price(device: PricedDevice, page_count: int) -> PriceQuote:
    """Revenue and cost of ``page_count`` pages under the device's current rule."""
    return PriceQuote(
        revenue=resolve_amount(device.revenue_formula, page_count, device.price_per_page),
        cost=resolve_amount(device.cost_formula, page_count, device.cost_per_page),
    )


def price_split(device: PricedDevice, physical: int, effective: int) -> PriceQuote:
    """Cost on every page produced, revenue only on billable pages."""
    return PriceQuote(
        revenue=price(device, effective).revenue,
        cost=price(device, physical).cost,
    )


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_percent(value: Decimal) -> Decimal:
    """Round a percentage to one decimal, half away from zero."""
    return Decimal(value).quantize(TENTH, rounding=ROUND_HALF_UP)


def percent_change(current: Decimal | int, previous: Decimal | int) -> Decimal:
    """Percent change from ``previous``; 0 when there is no baseline."""
    previous = Decimal(previous)
    if previous == 0:
        return Decimal("0.0")
    return round_percent((Decimal(current) - previous) / previous * 100)
