from .auth import anonymous_context, require_admin, require_subject

__all__ = ["anonymous_context", "require_admin", "require_subject"]
