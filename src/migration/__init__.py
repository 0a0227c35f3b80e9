# src/migration/__init__.py — v1
