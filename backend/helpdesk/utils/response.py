# =============================================================================
# HELPDESK API - UTILS/RESPONSE
# =============================================================================
# Builders for the standard response envelope:
#   {success, message?, data?, pagination?}
# =============================================================================

from typing import Any, Dict, List


def success_response(data: Any = None, message: str = None, **kwargs) -> Dict[str, Any]:
    """
    Build a standard success response.

    Args:
        data: Response payload
        message: Optional message
        **kwargs: Additional fields

    Returns:
        Standardized success response dict
    """
    response = {"success": True}
    if message:
        response["message"] = message
    if data is not None:
        response["data"] = data
    response.update(kwargs)
    return response


def paginated_response(items: List[Any], pagination: Dict[str, int],
                       message: str = None) -> Dict[str, Any]:
    """
    Build a paginated response.

    Args:
        items: Page items
        pagination: {page, limit, total, pages} from the pagination engine
        message: Optional message

    Returns:
        Response with pagination metadata
    """
    return success_response(data=items, message=message, pagination=pagination)
