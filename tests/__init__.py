"""
StayScout Test Suite

Structure:
- conftest.py: HTML fixtures, playwright stand-ins, fake clock, mock Supabase
- unit/: Fast, isolated unit tests (no browser, no network)
"""
