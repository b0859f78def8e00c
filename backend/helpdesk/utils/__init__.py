from .response import success_response, paginated_response

__all__ = ["success_response", "paginated_response"]
