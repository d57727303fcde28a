# app/models/__init__.py
from .product_category import Category, Product, EntityStatus
from .partner import Partner, PartnerType
from .transaction import Transaction, TransactionItem, TransactionType
from .unit import Unit
from .warehouse import Warehouse
from .expense import Expense
