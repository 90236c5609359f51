"""Custom exceptions for the optical store back-office."""

class OticaError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(OticaError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class ValidationError(BusinessLogicError):
    """Raised when request input has an invalid shape or value."""
    def __init__(self, message="Erro de validação", errors=None):
        self.errors = list(errors or [])
        payload = {'errors': self.errors} if self.errors else None
        super().__init__(message, status_code=400, payload=payload)

class NotFoundError(OticaError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_name, required, available):
        self.product_name = product_name
        self.required = required
        self.available = available
        message = f"Estoque insuficiente para {product_name}: necessário {required}, disponível {available}"
        super().__init__(message, status_code=409)

class UnauthorizedError(OticaError):
    """Raised when a request has no authenticated user."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 401)
