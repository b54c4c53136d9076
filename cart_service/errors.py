# cart_service/errors.py


class CartServiceError(Exception):
    """Базовая ошибка сервиса; обработчик в main.py превращает её в JSON-ответ."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(CartServiceError):
    status_code = 404


class InsufficientStock(CartServiceError):
    status_code = 400

    def __init__(self, available: int):
        super().__init__(f"Only {available} items available in stock")
        self.available = available


class AlreadyExists(CartServiceError):
    status_code = 400


class StorageError(CartServiceError):
    status_code = 500


class InvalidQuantity(CartServiceError):
    status_code = 400
