# app/api/webhooks/__init__.py
