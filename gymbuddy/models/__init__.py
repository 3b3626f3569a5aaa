from gymbuddy.models.account import Account
from gymbuddy.models.document import DocumentRow

__all__ = [
    "Account",
    "DocumentRow",
]
