"""
Rutas HTTP del servicio.
"""
