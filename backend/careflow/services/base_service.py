"""
Base service class.
Services contain business logic, coordinate repositories and own the
transaction boundary of every write they perform.
"""

from abc import ABC


class BaseService(ABC):
    """Base service class for all services."""
    pass
