import unittest

from utils.errors import ValidationError
from utils.validation import (
    BuyerName,
    CheckoutRequest,
    ClassLabel,
    StudentNumber,
    validate_checkout,
)


class ValidatorTestCase(unittest.TestCase):
    def assertAccepts(self, validator, *values):
        for value in values:
            self.assertTrue(validator.validate(value).is_valid, msg=repr(value))

    def assertRejects(self, validator, *values):
        for value in values:
            self.assertFalse(validator.validate(value).is_valid, msg=repr(value))

    def test_buyer_name(self):
        v = BuyerName()
        self.assertAccepts(
            v, "Jane Doe", "Jo", "O'Brien", "Anne-Marie Smith", "  Jane Doe  ", "Zoë Müller", "a" * 100
        )
        self.assertRejects(v, "", "J", "   J  ", "a" * 101, "Jane2", "Jane_Doe", "Jane, Doe", "=cmd", "Jane\nDoe")

    def test_class_label(self):
        v = ClassLabel()
        self.assertAccepts(v, "10A", "9", "12", " 7B ", "1Z")
        self.assertRejects(v, "", "   ", "100", "10a", "A10", "10AB", "10-A", "1 A")

    def test_student_number(self):
        v = StudentNumber()
        self.assertAccepts(v, "1", "23", " 42 ", "0123456789")
        self.assertRejects(v, "", "  ", "12345678901", "-1", "1.5", "12a", "+3")


class ValidateCheckoutTestCase(unittest.TestCase):
    def test_returns_trimmed_request(self):
        cleaned = validate_checkout(CheckoutRequest(1, "  Jane Doe ", " 10A", "23 "))
        self.assertEqual(cleaned, CheckoutRequest(1, "Jane Doe", "10A", "23"))

    def test_reports_first_violated_rule(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_checkout(CheckoutRequest(1, "J", "bad", "x"))
        self.assertEqual(ctx.exception.field, "buyer_name")

        with self.assertRaises(ValidationError) as ctx:
            validate_checkout(CheckoutRequest(1, "Jane Doe", "bad", "x"))
        self.assertEqual(ctx.exception.field, "class_label")

        with self.assertRaises(ValidationError) as ctx:
            validate_checkout(CheckoutRequest(1, "Jane Doe", "10A", "x"))
        self.assertEqual(ctx.exception.field, "student_number")
        self.assertIn("digits", str(ctx.exception))
