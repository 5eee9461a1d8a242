# app/bot/handlers/__init__.py
"""
🤖 BOT HANDLERS (обработчики команд)

Все команды бота (/start, /help, /status + регистрация номера)
"""

from .registration import create_router as create_registration_router

__all__ = ["create_registration_router"]
