from liftplan.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
