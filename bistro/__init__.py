"""
                Bistro Boss API

Async REST backend for the Bistro Boss restaurant ordering app:
users and roles, menu catalog, reviews, carts and Stripe checkout
on top of MongoDB.

License: MIT
"""

__version__ = "1.0.0"
