from .auth import User
from .sales import Sale
from .notes import Note
from .expenses import Expense

__all__ = [
    'User',
    'Sale',
    'Note',
    'Expense',
]
