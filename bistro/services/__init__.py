"""
                        Services Module

Business logic behind the routes.

Services:
    - payment: Stripe payment intents (mock in development)
    - checkout: payment recording and cart purge
    - analytics: admin dashboard statistics
"""
