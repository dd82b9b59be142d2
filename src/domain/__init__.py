"""
Domain layer for email forwarding business logic.

This layer contains:
- Data models (configuration, envelope, resolved recipients, results)
- Event validation and recipient resolution
- Header rewriting
- The forwarding pipeline that sequences the stages
"""
