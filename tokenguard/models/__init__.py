"""Database models"""
from tokenguard.models.consumed_token import ConsumedToken

__all__ = ["ConsumedToken"]
