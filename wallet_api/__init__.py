"""
Custodial Ethereum wallet GraphQL API.
"""

__version__ = "1.0.0"
