"""
Domain Layer - Pure Business Logic

This layer contains:
- Entities: accounts, orders, holdings, fund movements, KYC submissions
- Value Objects: money and review status
- Services: order execution and portfolio arithmetic

No external dependencies allowed in this layer.
"""
