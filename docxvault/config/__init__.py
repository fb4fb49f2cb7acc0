from .loader import load_config
from .models import (
    ConverterConfig,
    DocxVaultConfig,
    ReconcileConfig,
)

__all__ = [
    "ConverterConfig",
    "DocxVaultConfig",
    "ReconcileConfig",
    "load_config",
]
