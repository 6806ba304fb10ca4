"""Modelos, errores y entidades del dominio.

El dominio no conoce HTTP ni la CLI: solo conceptos de la API Dynatrace.
"""
