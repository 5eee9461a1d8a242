# app/services/__init__.py
"""
Бизнес-логика: заказы, realtime, уведомления, Telegram.
"""
