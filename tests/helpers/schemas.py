"""Small schema builders shared by the engine, presentation and server tests."""

from pathlib import Path
from typing import Any

from formflow.models.schema import FormSchema, parse_schema

FORMS_DIR = Path(__file__).resolve().parents[2] / "forms"


def text_field(field_id: str, required: bool = True, **extra: Any) -> dict:
    return {"field_id": field_id, "type": "text", "label": field_id, "required": required, **extra}


def direct(next_step_id: str) -> dict:
    return {"type": "direct", "next_step_id": next_step_id}


def linear_schema(n: int = 4) -> FormSchema:
    """s1 -> s2 -> ... -> sN, each step with one required text field f1..fN."""
    steps = []
    for i in range(1, n + 1):
        nav = direct(f"s{i + 1}") if i < n else {"type": "submit"}
        steps.append({
            "step_id": f"s{i}",
            "title": f"Step {i}",
            "fields": [text_field(f"f{i}")],
            "navigation": nav,
        })
    return parse_schema({"name": "linear", "version": "1", "start_step_id": "s1", "steps": steps})


def consent_schema() -> FormSchema:
    """welcome --consent=true--> applicant_type, otherwise no_consent (terminate)."""
    return parse_schema({
        "name": "consent",
        "version": "1",
        "start_step_id": "welcome",
        "steps": [
            {
                "step_id": "welcome",
                "title": "Welcome",
                "fields": [{
                    "field_id": "consent",
                    "type": "single_choice_buttons",
                    "label": "Do you agree?",
                    "options": ["Yes", "No"],
                    "required": True,
                }],
                "navigation": {
                    "type": "conditional",
                    "source_field_id": "consent",
                    "rules": [{"value": True, "next_step_id": "applicant_type"}],
                    "default_next_step_id": "no_consent",
                },
            },
            {
                "step_id": "no_consent",
                "title": "No consent",
                "type": "terminate",
                "text": "We cannot continue without consent.",
            },
            {
                "step_id": "applicant_type",
                "title": "Applicant",
                "fields": [text_field("applicant")],
                "navigation": direct("summary"),
            },
            {
                "step_id": "summary",
                "title": "Summary",
                "type": "summary",
                "text": "Check and submit.",
            },
        ],
    })


def visibility_schema() -> FormSchema:
    """One step where cert_number is shown (and required) only if has_cert is true."""
    return parse_schema({
        "name": "visibility",
        "version": "1",
        "start_step_id": "cert",
        "steps": [
            {
                "step_id": "cert",
                "title": "Certificate",
                "fields": [
                    {
                        "field_id": "has_cert",
                        "type": "single_choice_buttons",
                        "label": "Have a certificate?",
                        "options": ["Yes", "No"],
                        "required": True,
                    },
                    text_field(
                        "cert_number",
                        condition={"field_id": "has_cert", "operator": "equals", "value": True},
                    ),
                ],
                "navigation": direct("done"),
            },
            {
                "step_id": "done",
                "title": "Done",
                "fields": [{"field_id": "bye", "type": "info", "label": "Bye", "text": "Thanks"}],
                "navigation": {"type": "submit"},
            },
        ],
    })


def cycle_schema() -> FormSchema:
    """a <-> b with no required fields: a resumption walk never settles."""
    return parse_schema({
        "name": "cycle",
        "version": "1",
        "start_step_id": "a",
        "steps": [
            {"step_id": "a", "title": "A", "fields": [text_field("x", required=False)],
             "navigation": direct("b")},
            {"step_id": "b", "title": "B", "fields": [text_field("y", required=False)],
             "navigation": direct("a")},
        ],
    })


def load_sample_form() -> FormSchema:
    from formflow.store import load_schema_file

    return parse_schema(load_schema_file(FORMS_DIR / "wheelchair_application.yaml"))


# Answers that walk the sample form from welcome to summary (child branch)
SAMPLE_PATH = [
    ("welcome", {"has_consent": True}),
    ("applicant_type", {"applicant_type": "I am the beneficiary"}),
    ("beneficiary", {
        "beneficiary_name": "Anna Smirnova",
        "birth_date": "01.01.2018",
        "city": "Kazan",
        "phone": "+7 (912) 345-67-89",
        "email": "anna@example.org",
    }),
    ("need_type", {"need_type": "Wheelchair"}),
    ("certificate", {"has_certificate": False}),
    ("consultation", {"story": "The old wheelchair is broken."}),
    ("child_documents", {"birth_certificate": {"file_id": "f-1", "filename": "birth.pdf"}}),
]
