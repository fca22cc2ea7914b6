"""
Locations module (public, read-only).

States and their cities; addresses reference cities by id.
"""
