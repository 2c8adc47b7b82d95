"""
===============================================================================
TARJETA CRC — schemas/__init__.py
===============================================================================

Responsabilidades:
    - Agrupar los DTOs HTTP (pydantic) por feature.
    - Mantener contratos de request/response estables y separados del dominio.

Notas:
    - Los routers importan desde el submódulo de su feature.
===============================================================================
"""
