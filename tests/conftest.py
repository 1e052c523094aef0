import logging

import pytest

from catalog import ProductCatalog
from database import Database
from logger import LOGGER_NAME
from stores import InMemoryStore

MILK = {'name': 'Organic Milk', 'category': 'Dairy', 'price': 60, 'stock': 50,
        'low_stock_threshold': 10, 'expiry_date': '2024-09-15', 'barcode': '8901234567890'}
BREAD = {'name': 'Brown Bread', 'category': 'Bakery', 'price': 45, 'stock': 1,
         'low_stock_threshold': 5, 'expiry_date': '2024-09-08', 'barcode': '8901234567891'}
EGGS = {'name': 'Eggs (Dozen)', 'category': 'Dairy', 'price': 80, 'stock': 0,
        'low_stock_threshold': 20, 'expiry_date': '2024-09-25', 'barcode': '8901234567892'}


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def db():
    database = Database(":memory:", shop_id="test-shop")
    yield database
    database.close()


def seed(catalog):
    return {key: catalog.add_product(data).unwrap()
            for key, data in (('milk', MILK), ('bread', BREAD), ('eggs', EGGS))}


@pytest.fixture
def catalog(store):
    return ProductCatalog(store)


@pytest.fixture
def products(catalog):
    return seed(catalog)


@pytest.fixture
def db_catalog(db):
    return ProductCatalog(db)


@pytest.fixture
def db_products(db_catalog):
    return seed(db_catalog)
