from .routes import items_bp

__all__ = ["items_bp"]
