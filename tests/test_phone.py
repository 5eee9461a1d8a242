import pytest

from app.bot.utils.phone import clean_phone, format_phone, phone_variants


@pytest.mark.parametrize(
    "text",
    ["0912345678", "+251912345678", "912345678", "+251 912 345 678", "(091) 234-5678"],
)
def test_accepted_formats_normalise(text):
    assert format_phone(text) == "+251912345678"


@pytest.mark.parametrize("text", ["12345", "0812345678", "+25191234567", "hello", ""])
def test_rejected_formats(text):
    assert format_phone(text) is None


def test_clean_phone_strips_separators():
    assert clean_phone(" 0912-345 (678) ") == "0912345678"


def test_variants_are_unique_and_ordered():
    assert phone_variants("0912 345 678") == ["0912 345 678", "0912345678", "+251912345678"]
    assert phone_variants("+251912345678") == ["+251912345678"]
