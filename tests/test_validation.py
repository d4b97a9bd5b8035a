"""Field-level format validation tests.

validate_answer normalises good values and raises ValidationError with a
per-field message for bad ones.  Empty values always pass; whether a
field must be filled is the state machine's concern.
"""

from datetime import date

import pytest

from formflow.errors import ValidationError
from formflow.models.field import (
    DateField,
    EmailField,
    FieldValidation,
    FileField,
    InfoField,
    MultipleChoiceField,
    PhoneField,
    SingleChoiceField,
    TextField,
)
from formflow.validation import is_empty, parse_date, validate_answer, validate_step_answers

TODAY = date(2026, 10, 16)


class TestHelpers:
    """is_empty and parse_date."""

    @pytest.mark.parametrize("value", [None, "", "   ", [], {}])
    def test_empty(self, value):
        """None, blank strings and empty containers are empty."""
        assert is_empty(value)

    @pytest.mark.parametrize("value", [False, 0, "x", ["a"]])
    def test_not_empty(self, value):
        """False and 0 are real answers."""
        assert not is_empty(value)

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("05.03.1990", date(1990, 3, 5)),
            ("1990-03-05", date(1990, 3, 5)),
            ("31.02.2020", None),
            ("5/3/1990", None),
            ("05.03.90", None),
            ("1990-03-05T10:00", None),
            ("2020-02-30", None),
            (19900305, None),
        ],
    )
    def test_parse_date(self, raw, expected):
        """Dotted and ISO formats parse; everything else is None."""
        assert parse_date(raw) == expected


class TestTextAndContact:
    """text, email and phone fields."""

    def test_text_trimmed(self):
        """Text answers are stripped."""
        assert validate_answer(TextField(field_id="t", label="T"), "  hi  ") == "hi"

    def test_text_min_length(self):
        """min_length is enforced on the trimmed value."""
        field = TextField(field_id="t", label="T", validation=FieldValidation(min_length=3))
        with pytest.raises(ValidationError) as exc_info:
            validate_answer(field, " ab ")
        assert "t" in exc_info.value.errors

    def test_text_must_be_string(self):
        """Non-string text answers are rejected."""
        with pytest.raises(ValidationError, match="must be a string"):
            validate_answer(TextField(field_id="t", label="T"), 42)

    @pytest.mark.parametrize("email", ["a@b.ru", "first.last@sub.example.org"])
    def test_email_ok(self, email):
        """Ordinary addresses pass."""
        assert validate_answer(EmailField(field_id="e", label="E"), email) == email

    @pytest.mark.parametrize("email", ["plain", "a@b", "a b@c.de"])
    def test_email_bad(self, email):
        """Addresses without a domain dot or with spaces fail."""
        with pytest.raises(ValidationError):
            validate_answer(EmailField(field_id="e", label="E"), email)

    @pytest.mark.parametrize(
        "raw, cleaned",
        [
            ("+7 (912) 345-67-89", "+79123456789"),
            ("8 912 345 67 89", "89123456789"),
            ("9123456789", "9123456789"),
            ("+44 20 7946 0958", "+442079460958"),
        ],
    )
    def test_phone_ok(self, raw, cleaned):
        """Formatting characters are removed."""
        assert validate_answer(PhoneField(field_id="p", label="P"), raw) == cleaned

    @pytest.mark.parametrize("raw", ["12345", "12-34", "phone"])
    def test_phone_bad(self, raw):
        """Too short or non-numeric numbers fail."""
        with pytest.raises(ValidationError):
            validate_answer(PhoneField(field_id="p", label="P"), raw)


class TestDate:
    """Date fields: format, range and maxDate."""

    FIELD = DateField(field_id="d", label="D")

    def test_valid(self):
        """The raw string is returned unchanged."""
        assert validate_answer(self.FIELD, "01.01.2000", today=TODAY) == "01.01.2000"

    def test_future_rejected(self):
        """maxDate defaults to today."""
        with pytest.raises(ValidationError, match="16.10.2026"):
            validate_answer(self.FIELD, "17.10.2026", today=TODAY)

    def test_today_allowed(self):
        """The boundary day itself is fine."""
        validate_answer(self.FIELD, "2026-10-16", today=TODAY)

    def test_explicit_max_date(self):
        """An ISO maxDate replaces today."""
        field = DateField(field_id="d", label="D", validation={"maxDate": "2100-12-31"})
        assert validate_answer(field, "01.01.2050", today=TODAY) == "01.01.2050"

    def test_too_old(self):
        """Years before 1900 are rejected."""
        with pytest.raises(ValidationError, match="1900"):
            validate_answer(self.FIELD, "01.01.1899", today=TODAY)

    def test_nonexistent_day(self):
        """31 February does not exist."""
        with pytest.raises(ValidationError, match="not a valid date"):
            validate_answer(self.FIELD, "31.02.2000", today=TODAY)


class TestChoices:
    """Button, checkbox, file and info fields."""

    def test_single_choice_option(self):
        """One of the options is accepted as-is."""
        field = SingleChoiceField(field_id="c", label="C", options=["A", "B"])
        assert validate_answer(field, "B") == "B"

    def test_single_choice_unknown_option(self):
        """Unknown labels fail."""
        field = SingleChoiceField(field_id="c", label="C", options=["A", "B"])
        with pytest.raises(ValidationError, match="not a valid option"):
            validate_answer(field, "Z")

    def test_yes_no_accepts_bool(self):
        """Yes/no button pairs may record a boolean."""
        field = SingleChoiceField(field_id="c", label="C", options=["Yes", "No"])
        assert validate_answer(field, False) is False

    def test_bool_rejected_for_other_options(self):
        """A boolean does not fit arbitrary options."""
        field = SingleChoiceField(field_id="c", label="C", options=["A", "B"])
        with pytest.raises(ValidationError):
            validate_answer(field, True)

    def test_checkbox(self):
        """Checkbox answers are lists of options."""
        field = MultipleChoiceField(field_id="m", label="M", options=["a", "b", "c"])
        assert validate_answer(field, ["a", "c"]) == ["a", "c"]
        with pytest.raises(ValidationError, match="Invalid options"):
            validate_answer(field, ["a", "z"])
        with pytest.raises(ValidationError, match="must be a list"):
            validate_answer(field, "a")

    def test_single_file(self):
        """A single-file field stores one reference."""
        field = FileField(field_id="f", label="F")
        ref = {"file_id": "1", "filename": "a.pdf"}
        assert validate_answer(field, ref) == ref
        with pytest.raises(ValidationError, match="Only one file"):
            validate_answer(field, [ref, ref])

    def test_multiple_files(self):
        """allow_multiple fields always store a list."""
        field = FileField(field_id="f", label="F", allow_multiple=True)
        ref = {"file_id": "1", "filename": "a.pdf"}
        assert validate_answer(field, ref) == [ref]

    def test_file_missing_keys(self):
        """References need both file_id and filename."""
        with pytest.raises(ValidationError, match="file_id and filename"):
            validate_answer(FileField(field_id="f", label="F"), {"file_id": "1"})

    def test_info_never_accepts(self):
        """Info fields reject any value."""
        with pytest.raises(ValidationError):
            validate_answer(InfoField(field_id="i", label="I"), "x")

    def test_empty_passes(self):
        """Empty values are left for the required check."""
        field = SingleChoiceField(field_id="c", label="C", options=["A"])
        assert validate_answer(field, "") == ""


class TestStepAnswers:
    """validate_step_answers collects every failure."""

    def test_collects_all_errors(self, sample_form):
        """Two bad fields produce one error with two entries."""
        step = sample_form.get_step("beneficiary")
        with pytest.raises(ValidationError) as exc_info:
            validate_step_answers(
                step,
                {"email": "nope", "phone": "123", "city": "Kazan"},
                today=TODAY,
            )
        assert set(exc_info.value.errors) == {"email", "phone"}

    def test_normalises_known_fields(self, sample_form):
        """Fields of the step come back normalised."""
        step = sample_form.get_step("beneficiary")
        cleaned = validate_step_answers(step, {"phone": "+7 912 345 67 89"}, today=TODAY)
        assert cleaned == {"phone": "+79123456789"}

    def test_unknown_keys_rejected(self, sample_form):
        """A key naming no field of the form is an error."""
        step = sample_form.get_step("beneficiary")
        with pytest.raises(ValidationError) as exc_info:
            validate_step_answers(
                step, {"phone": "+79123456789", "extra": 1}, schema=sample_form, today=TODAY,
            )
        assert exc_info.value.errors == {"extra": "Unknown field"}, "only the stray key fails"

    def test_later_step_fields_validated(self, sample_form):
        """Answers for fields of other steps get their own format checks."""
        step = sample_form.get_step("welcome")
        with pytest.raises(ValidationError) as exc_info:
            validate_step_answers(
                step,
                {"has_consent": True, "email": "not-an-email", "phone": "abc"},
                schema=sample_form,
                today=TODAY,
            )
        assert set(exc_info.value.errors) == {"email", "phone"}

        cleaned = validate_step_answers(
            step, {"has_consent": True, "phone": "8 912 345 67 89"},
            schema=sample_form, today=TODAY,
        )
        assert cleaned["phone"] == "89123456789", "ahead-of-step values are normalised"

    def test_without_schema_foreign_keys_rejected(self, sample_form):
        """With no schema only the step's own fields are accepted."""
        step = sample_form.get_step("welcome")
        with pytest.raises(ValidationError, match="email"):
            validate_step_answers(step, {"email": "a@b.co"}, today=TODAY)

    def test_error_message_format(self):
        """The message names each field."""
        err = ValidationError({"a": "bad", "b": "worse"})
        assert str(err) == "Invalid answer(s): 'a': bad; 'b': worse"
