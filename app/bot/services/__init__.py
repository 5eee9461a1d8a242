# app/bot/services/__init__.py
