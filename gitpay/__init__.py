"""
GitPay: tagged stablecoin payments, their history and their badges.
"""

__version__ = "1.0.0"
