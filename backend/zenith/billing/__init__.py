from .routes import billing_bp

__all__ = ["billing_bp"]
