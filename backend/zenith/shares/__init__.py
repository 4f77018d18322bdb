from .routes import objects_bp, shares_bp

__all__ = ["objects_bp", "shares_bp"]
