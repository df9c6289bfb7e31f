"""auth/ -- Credential validation and session lifecycle for SessionGate.

Layer rule: auth/ imports stdlib, third-party libraries, and core/ only.
It does NOT import from api/. api/ and main.py import from auth/, not the
other way around.
"""
