"""
Utilidades compartidas.
"""
