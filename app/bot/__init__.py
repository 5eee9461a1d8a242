# app/bot/__init__.py
"""🤖 Telegram-бот: регистрация сотрудников по номеру телефона."""
