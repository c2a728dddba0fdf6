# accounts/__init__.py
"""
Accounts app - users and companies.

This app provides:
- Company: the tenant; every ledger and commerce row belongs to one
- User: custom user model (email login), author of manual entries
"""
