# src/services/auth_service/__init__.py
"""
Регистрация, вход и токены доступа.
"""
