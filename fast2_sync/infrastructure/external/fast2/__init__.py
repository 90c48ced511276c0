"""
Integracion de lectura con la API FAST2 (fastigheter y arbetsordrar).

Autenticacion en dos capas (gateway + sesion) y listados completos por entidad.
"""
