# src/cleanup/__init__.py — v1
