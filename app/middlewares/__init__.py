from .request_id_middleware import RequestIDMiddleware, REQUEST_ID_HEADER

__all__ = ["RequestIDMiddleware", "REQUEST_ID_HEADER"]
