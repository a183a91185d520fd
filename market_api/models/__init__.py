"""Database models"""
from market_api.models.account import Account, AccountRole, AccountStatus
from market_api.models.region import Region

__all__ = ["Account", "AccountRole", "AccountStatus", "Region"]
