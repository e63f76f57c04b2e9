from docshare.utils.validators import (
    first_error,
    get_password_checks,
    min_length_rule,
    password_validation_rule,
    required_field_rule,
    valid_email_rule,
)


def test_required_field_rejects_blank_values():
    rule = required_field_rule("*This field is required")
    assert rule("") == "*This field is required"
    assert rule("   ") == "*This field is required"
    assert rule(None) == "*This field is required"
    assert rule("Ada") is None


def test_min_length_leaves_empty_values_to_required_rule():
    rule = min_length_rule(5, "too short")
    assert rule("") is None
    assert rule("abcd") == "too short"
    assert rule("abcde") is None


def test_valid_email_rule():
    assert valid_email_rule("ada@example.com") is None
    assert valid_email_rule("ada@example") == "Please enter a valid email address"
    assert valid_email_rule("ada example.com") is not None
    assert valid_email_rule("") is not None


def test_strong_password_passes_all_checks():
    checks = get_password_checks("Secret#123")
    assert checks.is_length_valid
    assert checks.has_uppercase_letter
    assert checks.has_symbol
    assert checks.all_valid


def test_password_checks_report_each_missing_requirement():
    assert not get_password_checks("Sh#1").is_length_valid
    assert not get_password_checks("secret#123").has_uppercase_letter
    assert not get_password_checks("Secret1234").has_symbol
    assert get_password_checks("Secret_123").has_symbol


def test_password_validation_rule_message():
    rule = password_validation_rule(8, True, True)
    assert rule("Secret#123") is None
    assert rule("secret") == (
        "Password must be at least 8 characters, contain at least one uppercase "
        "letter and include at least one symbol."
    )


def test_password_validation_rule_without_symbol_requirement():
    rule = password_validation_rule(8, True, False)
    assert rule("Secret1234") is None
    assert rule("secret1234") is not None


def test_first_error_returns_first_failing_rule():
    rules = [required_field_rule("required"), valid_email_rule]
    assert first_error("", rules) == "required"
    assert first_error("nope", rules) == "Please enter a valid email address"
    assert first_error("a@b.io", rules) is None
