from .routes import realtime_bp

__all__ = ["realtime_bp"]
