# backend/drivebook/routes/__init__.py
