"""Database models for Entregas ZAP (Supabase tables)"""
from .condominio import Condominio
from .morador import Morador
from .funcionario import Funcionario
from .entrega import Entrega
from .super_administrador import SuperAdministrador

__all__ = [
    "Condominio",
    "Morador",
    "Funcionario",
    "Entrega",
    "SuperAdministrador",
]
