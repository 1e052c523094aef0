"""Tests for the SQLite store."""

from database import Database
from models import Product, Sale, CartLineItem


def make_sale(date, items, user_id='user-1'):
    subtotal = sum(i.price * i.quantity for i in items)
    return Sale(items=items, subtotal=subtotal, tax_amount=0, total=subtotal,
                user_id=user_id, date=date)


def test_product_crud(db):
    product = Product('Tata Salt (1kg)', 28, stock=300, barcode='990000000012', id='p-1')
    db.insert_product(product)

    assert db.get_product('p-1') == product
    product.stock = 250
    db.update_product(product)
    assert db.load_products()[0].stock == 250
    assert db.delete_product('p-1')
    assert db.get_product('p-1') is None
    assert not db.delete_product('p-1')


def test_adjust_stock_never_goes_negative(db):
    db.insert_product(Product('Sugar', 45, stock=2, id='p-1'))

    assert db.adjust_stock('p-1', -2)
    assert not db.adjust_stock('p-1', -1)
    assert db.get_product('p-1').stock == 0


def test_commit_sale_rolls_back_on_short_stock(db):
    db.insert_product(Product('Sugar', 45, stock=5, id='a'))
    db.insert_product(Product('Salt', 28, stock=1, id='b'))
    sale = make_sale('2026-10-19T10:00:00+00:00',
                     [CartLineItem('a', 'Sugar', 3, 45), CartLineItem('b', 'Salt', 2, 28)])

    short = db.commit_sale(sale, {'a': 3, 'b': 2})

    assert short == ['b']
    assert db.get_product('a').stock == 5
    assert db.list_sales() == []


def test_list_sales_by_date_range(db):
    for day in ('2026-10-17', '2026-10-18', '2026-10-19'):
        db.commit_sale(make_sale(f'{day}T12:30:00+00:00', [CartLineItem('x', 'Tea', 1, 10)]), {})

    assert len(db.list_sales()) == 3
    assert [s.date[:10] for s in db.list_sales('2026-10-18')] == ['2026-10-18', '2026-10-19']
    assert [s.date[:10] for s in db.list_sales(date_to='2026-10-18')] == ['2026-10-17', '2026-10-18']
    assert len(db.list_sales('2026-10-18', '2026-10-18')) == 1


def test_shops_sharing_a_file_are_isolated(tmp_path):
    path = str(tmp_path / "pos.db")
    shop_a = Database(path, shop_id='a')
    shop_b = Database(path, shop_id='b')
    try:
        shop_a.insert_product(Product('Milk', 60, stock=5, barcode='12345678', id='p'))
        shop_b.insert_product(Product('Milk', 65, stock=9, barcode='12345678', id='p'))
        shop_a.commit_sale(make_sale('2026-10-19T09:00:00+00:00',
                                     [CartLineItem('p', 'Milk', 1, 60)]), {'p': 1})
        shop_a.set_setting('revenue_reset_timestamp', 'x')

        assert shop_b.get_product('p').stock == 9
        assert shop_b.list_sales() == []
        assert shop_b.get_setting('revenue_reset_timestamp') is None

        shop_b.clear_sales()
        assert len(shop_a.list_sales()) == 1
    finally:
        shop_a.close()
        shop_b.close()


def test_settings(db):
    assert db.get_setting('k', 'default') == 'default'
    db.set_setting('k', 'v1')
    db.set_setting('k', 'v2')
    assert db.get_setting('k') == 'v2'
    db.delete_setting('k')
    assert db.get_setting('k') is None
