# backend/chatapp/services/__init__.py
