"""Tests for configuration handling and the command line."""

import json

import pytest

import main


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "database": {"name": str(tmp_path / "pos.db")},
        "shop": {"user_id": "shop-1", "tax_rate": 5},
        "export": {"default_dir": str(tmp_path / "exports")},
        "logging": {"file": ""}
    }), encoding='utf-8')
    return str(path)


def run(config_path, *argv):
    return main.main(["--config", config_path, *argv])


def add_milk(config_path, stock=5):
    return run(config_path, "products", "add", "--name", "Organic Milk", "--price", "60",
               "--stock", str(stock), "--barcode", "8901234567890")


def test_load_config_creates_default_file(tmp_path):
    path = tmp_path / "config.json"

    config = main.load_config(str(path))

    assert path.exists()
    assert config == main.DEFAULT_CONFIG
    assert json.loads(path.read_text(encoding='utf-8'))["shop"]["currency"] == "₹"


def test_load_config_falls_back_on_broken_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding='utf-8')

    assert main.load_config(str(path)) == main.DEFAULT_CONFIG


def test_merge_config_keeps_nested_defaults():
    merged = main.merge_config(main.DEFAULT_CONFIG, {"shop": {"tax_rate": 18}})

    assert merged["shop"] == {"user_id": "default", "tax_rate": 18, "currency": "₹"}
    assert main.DEFAULT_CONFIG["shop"]["tax_rate"] == 0


@pytest.mark.parametrize("item, expected", [
    ("8901234567890", ("8901234567890", 1)),
    ("8901234567890:3", ("8901234567890", 3)),
])
def test_parse_item(item, expected):
    assert main.parse_item(item) == expected


@pytest.mark.parametrize("item", ["8901234567890:0", "8901234567890:two"])
def test_parse_item_rejects_bad_quantity(item):
    with pytest.raises(ValueError):
        main.parse_item(item)


def test_sell_prints_receipt_and_updates_stock(config_path, capsys):
    assert add_milk(config_path) == 0
    capsys.readouterr()

    assert run(config_path, "sell", "8901234567890:2") == 0
    out = capsys.readouterr().out
    assert "Subtotal: ₹120.00" in out
    assert "Tax (5%): ₹6.00" in out
    assert "Total: ₹126.00" in out

    assert run(config_path, "products", "list") == 0
    assert "stock 3" in capsys.readouterr().out


def test_sell_with_percentage_discount(config_path, capsys):
    add_milk(config_path)
    capsys.readouterr()

    assert run(config_path, "sell", "8901234567890:2", "--discount", "10", "--percent") == 0

    out = capsys.readouterr().out
    assert "Discount: -₹12.00" in out
    assert "Total: ₹113.40" in out


def test_sell_beyond_stock_fails(config_path, capsys):
    add_milk(config_path, stock=1)

    assert run(config_path, "sell", "8901234567890:2") == 1
    assert "Error:" in capsys.readouterr().err

    run(config_path, "sales", "list")
    assert capsys.readouterr().out == ""


def test_sell_unknown_barcode(config_path, capsys):
    assert run(config_path, "sell", "0000000000000") == 1
    assert "Error:" in capsys.readouterr().err


def test_add_duplicate_product_fails(config_path, capsys):
    add_milk(config_path)

    assert add_milk(config_path) == 1
    assert "Error:" in capsys.readouterr().err


def test_update_unknown_product(config_path, capsys):
    assert run(config_path, "products", "update", "nope", "--price", "5") == 1


def test_sales_clear(config_path, capsys):
    add_milk(config_path)
    run(config_path, "sell", "8901234567890")
    capsys.readouterr()

    assert run(config_path, "sales", "clear", "--yes") == 0
    run(config_path, "sales", "list")

    assert capsys.readouterr().out == "Sales data cleared\n"


def test_report_dashboard(config_path, capsys):
    add_milk(config_path, stock=3)
    capsys.readouterr()

    assert run(config_path, "report", "dashboard") == 0

    out = capsys.readouterr().out
    assert "Products: 1" in out
    assert "Low stock: Organic Milk" in out


def test_export_and_import_inventory(config_path, tmp_path, capsys):
    add_milk(config_path)
    export = str(tmp_path / "inventory.csv")

    assert run(config_path, "products", "export", export) == 0
    assert run(config_path, "products", "import", export) == 0

    assert "Added 0, updated 1, rejected 0" in capsys.readouterr().out


def test_add_product_with_nan_price_fails(config_path, capsys):
    assert run(config_path, "products", "add", "--name", "Ghost", "--price", "nan",
               "--stock", "1") == 1
    assert "Error:" in capsys.readouterr().err

    run(config_path, "products", "list")
    assert capsys.readouterr().out == ""
