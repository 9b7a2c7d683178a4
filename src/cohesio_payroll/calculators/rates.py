"""Statutory rate table: CNSS and AMO contributions plus IR brackets."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from cohesio_payroll.calculators.money import CENTS
from cohesio_payroll.exceptions import ValidationError


@dataclass(frozen=True)
class ContributionRule:
    """Flat-rate contribution with an optional monthly ceiling."""

    rate: Decimal
    monthly_ceiling: Decimal | None = None  # None = uncapped


@dataclass(frozen=True)
class TaxBracket:
    """Income tax bracket in closed (rate, quick deduction) form."""

    min_amount: Decimal
    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g., 0.30 for 30%
    deduction: Decimal = Decimal("0")

    def closed_form(self, amount: Decimal) -> Decimal:
        return amount * self.rate - self.deduction


@dataclass(frozen=True)
class StatutoryRateTable:
    """Contribution rates and the progressive IR bracket table.

    Payload structure (JSON):
    {
        "cnss": {"rate": 0.0448, "monthlyCeiling": 6000},
        "amo": {"rate": 0.0226, "monthlyCeiling": null},
        "irBrackets": [
            {"min": 0, "max": 2500, "rate": 0, "deduction": 0},
            {"min": 2500.01, "max": 4166.67, "rate": 0.10, "deduction": 250},
            ...
            {"min": 15000.01, "max": null, "rate": 0.38, "deduction": 2033.33}
        ]
    }
    """

    cnss: ContributionRule
    amo: ContributionRule
    ir_brackets: tuple[TaxBracket, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> StatutoryRateTable:
        """Parse and validate a rate table payload."""
        try:
            table = cls(
                cnss=_parse_contribution(payload["cnss"]),
                amo=_parse_contribution(payload["amo"]),
                ir_brackets=tuple(
                    TaxBracket(
                        min_amount=_decimal(b["min"]),
                        max_amount=_decimal(b["max"]) if b.get("max") is not None else None,
                        rate=_decimal(b["rate"]),
                        deduction=_decimal(b.get("deduction", 0)),
                    )
                    for b in payload["irBrackets"]
                ),
            )
        except (KeyError, TypeError, AttributeError, InvalidOperation) as exc:
            raise ValidationError(f"Malformed statutory rate table: {exc!r}") from exc

        table.validate()
        return table

    @classmethod
    def from_file(cls, path: str | Path) -> StatutoryRateTable:
        """Load a rate table from a JSON file."""
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ValidationError(f"Cannot read statutory rate table {path}: {exc}") from exc
        return cls.from_dict(payload)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cnss": _contribution_to_dict(self.cnss),
            "amo": _contribution_to_dict(self.amo),
            "irBrackets": [
                {
                    "min": str(b.min_amount),
                    "max": str(b.max_amount) if b.max_amount is not None else None,
                    "rate": str(b.rate),
                    "deduction": str(b.deduction),
                }
                for b in self.ir_brackets
            ],
        }

    def validate(self) -> None:
        """Check the table covers [0, inf) without overlaps or jumps.

        Adjacent brackets may leave a one-cent gap (2500 / 2500.01) and their
        closed forms may disagree by at most one cent at the shared boundary,
        since quick deductions are tabled to the cent.
        """
        for name, rule in (("cnss", self.cnss), ("amo", self.amo)):
            if rule.rate < 0:
                raise ValidationError(f"{name} rate must not be negative", field=name)
            if rule.monthly_ceiling is not None and rule.monthly_ceiling < 0:
                raise ValidationError(f"{name} ceiling must not be negative", field=name)

        brackets = self.ir_brackets
        if not brackets:
            raise ValidationError("IR bracket table is empty", field="irBrackets")
        if brackets[0].min_amount != 0:
            raise ValidationError("First IR bracket must start at 0", field="irBrackets")
        if brackets[-1].max_amount is not None:
            raise ValidationError("Last IR bracket must be unbounded", field="irBrackets")

        for i, bracket in enumerate(brackets):
            if bracket.rate < 0:
                raise ValidationError(f"IR bracket {i} has a negative rate", field="irBrackets")
            if i == len(brackets) - 1:
                break
            if bracket.max_amount is None:
                raise ValidationError(
                    f"IR bracket {i} is unbounded but not last", field="irBrackets"
                )
            if bracket.max_amount < bracket.min_amount:
                raise ValidationError(f"IR bracket {i} has max < min", field="irBrackets")

            following = brackets[i + 1]
            gap = following.min_amount - bracket.max_amount
            if gap <= 0:
                raise ValidationError(
                    f"IR brackets {i} and {i + 1} overlap", field="irBrackets"
                )
            if gap > CENTS:
                raise ValidationError(
                    f"IR brackets {i} and {i + 1} leave a gap of {gap}", field="irBrackets"
                )

            boundary = bracket.max_amount
            jump = abs(bracket.closed_form(boundary) - following.closed_form(boundary))
            if jump > CENTS:
                raise ValidationError(
                    f"IR tax jumps by {jump} at {boundary} between brackets {i} and {i + 1}",
                    field="irBrackets",
                )

    def bracket_for(self, taxable_income: Decimal) -> TaxBracket:
        """First bracket containing the amount; amounts in a cent gap go up."""
        for bracket in self.ir_brackets:
            if bracket.max_amount is None or taxable_income <= bracket.max_amount:
                return bracket
        return self.ir_brackets[-1]


def default_rate_table() -> StatutoryRateTable:
    """Monthly CNSS/AMO/IR table shipped with the engine."""
    return StatutoryRateTable(
        cnss=ContributionRule(rate=Decimal("0.0448"), monthly_ceiling=Decimal("6000")),
        amo=ContributionRule(rate=Decimal("0.0226"), monthly_ceiling=None),
        ir_brackets=(
            TaxBracket(Decimal("0"), Decimal("2500"), Decimal("0"), Decimal("0")),
            TaxBracket(Decimal("2500.01"), Decimal("4166.67"), Decimal("0.10"), Decimal("250")),
            TaxBracket(Decimal("4166.68"), Decimal("5000"), Decimal("0.20"), Decimal("666.67")),
            TaxBracket(Decimal("5000.01"), Decimal("6666.67"), Decimal("0.30"), Decimal("1166.67")),
            TaxBracket(Decimal("6666.68"), Decimal("15000"), Decimal("0.34"), Decimal("1433.33")),
            TaxBracket(Decimal("15000.01"), None, Decimal("0.38"), Decimal("2033.33")),
        ),
    )


def pinned_rates(
    snapshot: dict[str, Any] | None, rates: StatutoryRateTable | None = None
) -> StatutoryRateTable:
    """Table a run must be computed with.

    A finalized run carries the table its totals were frozen under; anything
    else uses ``rates`` (or the built-in table).
    """
    if snapshot is not None:
        return StatutoryRateTable.from_dict(snapshot)
    return rates or default_rate_table()


def _decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidOperation(f"not a number: {value!r}")
    amount = Decimal(str(value))
    if not amount.is_finite():
        raise InvalidOperation(f"not a finite number: {value!r}")
    return amount


def _parse_contribution(data: dict[str, Any]) -> ContributionRule:
    ceiling = data.get("monthlyCeiling", data.get("monthly_ceiling"))
    return ContributionRule(
        rate=_decimal(data["rate"]),
        monthly_ceiling=_decimal(ceiling) if ceiling is not None else None,
    )


def _contribution_to_dict(rule: ContributionRule) -> dict[str, Any]:
    return {
        "rate": str(rule.rate),
        "monthlyCeiling": str(rule.monthly_ceiling) if rule.monthly_ceiling is not None else None,
    }
