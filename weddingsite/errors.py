# weddingsite/errors.py
# =================================================================================
# 🚨 ERRORES DE DOMINIO
# ---------------------------------------------------------------------------------
# Cada error lleva un código estable y su status HTTP. main.py registra un
# handler que los convierte en {"error": ..., "code": ...}.
# =================================================================================


class WeddingError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WeddingError):
    code = "BAD_USER_INPUT"
    status_code = 400


class AuthenticationError(WeddingError):
    code = "UNAUTHENTICATED"
    status_code = 401


class ForbiddenError(WeddingError):
    code = "FORBIDDEN"
    status_code = 403


class RateLimitError(WeddingError):
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
