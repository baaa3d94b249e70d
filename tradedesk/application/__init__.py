"""
Application Layer - Use cases orchestrating domain logic over repositories.
"""
