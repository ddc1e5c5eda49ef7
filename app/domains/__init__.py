# app/domains/__init__.py
