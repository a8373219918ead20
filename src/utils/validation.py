"""
Checkout form rules.

Each rule is a Textual ``Validator`` so the same object marks an ``Input``
invalid while typing and gates the submission in ``services.checkout``.
Values are trimmed before they are checked.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import List, Tuple

from textual.validation import ValidationResult, Validator

from utils.errors import ValidationError

# letters of any alphabet, space, apostrophe, hyphen
NAME_PATTERN = re.compile(r"(?:[^\W\d_]|[ '-])+")
CLASS_LABEL_PATTERN = re.compile(r"[0-9]{1,2}[A-Z]?")
STUDENT_NUMBER_PATTERN = re.compile(r"[0-9]{1,10}")


class BuyerName(Validator):
    def validate(self, value: str) -> ValidationResult:
        value = value.strip()
        if not 2 <= len(value) <= 100:
            return self.failure("Name must be 2 to 100 characters long.")
        if not NAME_PATTERN.fullmatch(value):
            return self.failure(
                "Name may only contain letters, spaces, apostrophes and hyphens."
            )
        return self.success()


class ClassLabel(Validator):
    def validate(self, value: str) -> ValidationResult:
        value = value.strip()
        if not 1 <= len(value) <= 20:
            return self.failure("Class must be 1 to 20 characters long.")
        if not CLASS_LABEL_PATTERN.fullmatch(value):
            return self.failure(
                'Class must be 1-2 digits, optionally followed by a capital letter (e.g. "10A").'
            )
        return self.success()


class StudentNumber(Validator):
    def validate(self, value: str) -> ValidationResult:
        value = value.strip()
        if not STUDENT_NUMBER_PATTERN.fullmatch(value):
            return self.failure("Student number must be 1 to 10 digits.")
        return self.success()


@dataclass(frozen=True)
class CheckoutRequest:
    """One submission of the checkout form: the product plus the raw fields."""

    pid: int
    buyer_name: str
    class_label: str
    student_number: str

    def checks(self) -> List[Tuple[str, str, Validator]]:
        """(field, value, rule) in the order they are reported."""
        return [
            ("buyer_name", self.buyer_name, BuyerName()),
            ("class_label", self.class_label, ClassLabel()),
            ("student_number", self.student_number, StudentNumber()),
        ]

    def trimmed(self) -> CheckoutRequest:
        return replace(
            self,
            buyer_name=self.buyer_name.strip(),
            class_label=self.class_label.strip(),
            student_number=self.student_number.strip(),
        )


def validate_checkout(request: CheckoutRequest) -> CheckoutRequest:
    """Return the trimmed request, or raise ValidationError for the first failed rule."""
    for field, value, rule in request.checks():
        result = rule.validate(value or "")
        if not result.is_valid:
            raise ValidationError(result.failure_descriptions[0], field=field)
    return request.trimmed()
