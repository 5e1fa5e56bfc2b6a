# stock_count/services/__init__.py
"""
Business logic services for Stock Count.
"""
from stock_count.services.sessions import SessionRegistry
from stock_count.services.counts import CountsStore
from stock_count.services.destructions import DestructionsLedger
from stock_count.services.mapping import MappingStore

__all__ = [
    "SessionRegistry",
    "CountsStore",
    "DestructionsLedger",
    "MappingStore",
]
