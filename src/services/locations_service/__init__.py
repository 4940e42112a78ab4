# src/services/locations_service/__init__.py
"""
Приём и выдача геоточек пользователя.
"""
