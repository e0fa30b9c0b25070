"""
Storage layer exports.
"""

from leadgen.storage.base import SeenDomainStore
from leadgen.storage.memory import InMemorySeenDomainStore
from leadgen.storage.sqlalchemy_storage import SQLAlchemySeenDomainStore

__all__ = ["InMemorySeenDomainStore", "SQLAlchemySeenDomainStore", "SeenDomainStore"]
