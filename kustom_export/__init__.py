"""Generate JavaScript-friendly Kotlin facades for Kotlin declarations."""

__version__ = "0.1.0"
