"""
Servicios de negocio del reconocimiento de pasaportes.
"""
