from app.parsing.numbers import parse_locale_number


def test_brazilian_thousands_and_decimal():
    assert parse_locale_number("1.234.567,89") == 1234567.89
    assert parse_locale_number("5,10") == 5.1
    assert parse_locale_number("1.000") == 1000.0


def test_placeholders_are_null():
    assert parse_locale_number("-") is None
    assert parse_locale_number("") is None
    assert parse_locale_number("   ") is None
    assert parse_locale_number(None) is None


def test_numbers_pass_through():
    assert parse_locale_number(42) == 42
    assert parse_locale_number(4.95) == 4.95


def test_garbage_is_null_not_error():
    assert parse_locale_number("abc") is None
    assert parse_locale_number("R$ 10,00") is None


def test_no_locale_detection():
    # dots always stripped, only the first comma becomes the decimal point
    assert parse_locale_number("1.5") == 15.0
    assert parse_locale_number("1,2,3") == 1.2
    assert parse_locale_number("-0,0025") == -0.0025
    assert parse_locale_number(" 12,5 ") == 12.5
