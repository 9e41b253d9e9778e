import pytest

from hemkop_cart.measure import format_grams, parse_weight


def test_parse_weight_grams():
    assert parse_weight("500g vetemjöl") == 500.0
    assert parse_weight("ca: 170 g") == 170.0
    assert parse_weight("400 gram krossade tomater") == 400.0


def test_parse_weight_kilos():
    assert parse_weight("2.5 kg bananer") == 2500.0
    assert parse_weight("1 kilo potatis") == 1000.0
    assert parse_weight("1,5 KG morötter") == 1500.0


def test_parse_weight_absent():
    assert parse_weight(None) is None
    assert parse_weight("") is None
    assert parse_weight("en burk jordnötssmör") is None
    assert parse_weight("2 dl grädde") is None
    assert parse_weight("2 grädde") is None
    # The unit has to end the word.
    assert parse_weight("3 gurkor") is None


def test_parse_weight_unit_invariant():
    assert parse_weight("2kg") == parse_weight("2000g")
    assert parse_weight("0.5 kilo") == parse_weight("500 gram")


def test_parse_weight_idempotent_on_grams():
    grams = parse_weight("1.2 kg")
    assert parse_weight(f"{grams}g") == grams


@pytest.mark.parametrize("grams,expected", [(500, "500g"), (2500, "2.50kg"), (1000, "1.00kg")])
def test_format_grams(grams, expected):
    assert format_grams(grams) == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1 kilogram mjöl", 1000.0),
        ("2 kilos potatis", 2000.0),
        ("500 grams flour", 500.0),
        ("500gr köttfärs", 500.0),
        ("250 GR smör", 250.0),
        ("1,5 kilogram morötter", 1500.0),
    ],
)
def test_parse_weight_long_unit_spellings(text, expected):
    assert parse_weight(text) == expected


@pytest.mark.parametrize("kilos", ["2.01", "2.03", "4.02", "4.03", "8.05", "9,99", "0.07"])
def test_parse_weight_decimal_kilos_match_grams(kilos):
    grams = int(round(float(kilos.replace(",", ".")) * 1000))
    assert parse_weight(f"{kilos} kg") == parse_weight(f"{grams}g") == float(grams)
