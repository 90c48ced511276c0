"""
Gateway de escritura hacia Directus (items API).
"""
