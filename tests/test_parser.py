# tests/test_parser.py
import re

import pytest

from storefront.errors import ValidationError
from storefront.inference import infer_from_narrative
from storefront.normalize import normalize_key, parse_integer, split_line
from storefront.parser import parse_car_text
from conftest import DEMO_TEXT


def test_structured_text_is_coerced():
    car = parse_car_text(DEMO_TEXT)
    assert car.title == "Demo Car"
    assert (car.price, car.year, car.mileage) == (10000, 2020, 1000)
    assert car.engine == "2.0L"
    assert car.stock_no == "T-0001"
    assert car.brand == "Demo"
    assert car.model == "Car"


def test_currency_and_unit_strings():
    assert parse_integer("$18,900", "price") == 18900
    assert parse_integer("22,500 km", "mileage") == 22500
    assert parse_integer("-5", "price") == -5


@pytest.mark.parametrize("raw", ["call us", "-", "", "1-2"])
def test_invalid_numbers_rejected(raw):
    with pytest.raises(ValidationError, match="Invalid numeric value for price"):
        parse_integer(raw, "price")


def test_key_aliases_and_line_rules():
    assert normalize_key("\ufeffTitle ") == "title"
    assert normalize_key("里程") == "mileage"
    assert normalize_key("Transmission") == "trans"
    assert normalize_key("Color") == "color"
    assert split_line("# price: 1") is None
    assert split_line("no separator here") is None
    assert split_line("price:") is None
    assert split_line("价格：$9,000") == ("price", "$9,000")


def test_bilingual_description():
    text = (
        "\ufeff标题: Honda Fit\n价格: 8,800\n年份: 2018\n里程: 60,000\n发动机: 1.5L\n"
        "变速箱: 自动\n燃油: 汽油\n状态: 在售\n库存号: HF-0042\n# internal note"
    )
    car = parse_car_text(text)
    assert car.title == "Honda Fit"
    assert car.price == 8800
    assert car.mileage == 60000
    assert car.trans == "自动"
    assert car.stock_no == "HF-0042"


def test_narrative_fills_missing_fields():
    text = (
        "title: Toyota Camry\n"
        "One owner 2019 sedan with a 2.5L, automatic, gasoline, 45,000 km driven. "
        "Asking $18,900. Ref TC-2019."
    )
    car = parse_car_text(text)
    assert car.price == 18900
    assert car.year == 2019
    assert car.mileage == 45000
    assert car.engine == "2.5L"
    assert car.trans == "automatic"
    assert car.fuel == "gasoline"
    assert car.stock_no == "TC-2019"
    assert car.status == "available"
    assert (car.brand, car.model) == ("Toyota", "Camry")


def test_inference_keeps_structured_values():
    fields = {"price": "5000"}
    infer_from_narrative("price: 5000 but was $7,000 new", fields)
    assert fields["price"] == "5000"


def test_labeled_candidates_win():
    fields = infer_from_narrative("Mileage 12,345 and 99 km to the port", {})
    assert fields["mileage"] == "12,345"


def test_engine_keeps_its_suffix():
    assert infer_from_narrative("Turbocharged 2.0 Turbo with AWD", {})["engine"] == "2.0 Turbo"
    assert infer_from_narrative("a 1.6T hatch", {})["engine"] == "1.6T"
    assert infer_from_narrative("engine: V8, low miles", {})["engine"] == "V8"


def test_missing_field_is_named():
    with pytest.raises(ValidationError, match="Missing required field in description: year"):
        parse_car_text("title: Mystery\nprice: 100")


def test_missing_title_without_brand_and_model():
    text = DEMO_TEXT.replace("title: Demo Car\n", "")
    with pytest.raises(ValidationError, match="title"):
        parse_car_text(text)


def test_title_backfilled_from_brand_and_model():
    text = DEMO_TEXT.replace("title: Demo Car\n", "brand: Mazda\nmodel: CX-5\n")
    car = parse_car_text(text)
    assert car.title == "Mazda CX-5"


def test_invalid_numeric_field_rejects_whole_record():
    with pytest.raises(ValidationError, match="Invalid numeric value for year"):
        parse_car_text(DEMO_TEXT.replace("year: 2020", "year: unknown"))


def test_stock_number_generated():
    car = parse_car_text(DEMO_TEXT.replace("stock_no: T-0001", ""))
    assert re.fullmatch(r"AUTO-\d{6}-[0-9A-F]{4}", car.stock_no)
