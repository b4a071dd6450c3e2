from .main_keyboards import get_main_kb
from .inline_keyboards import (
    get_campaigns_kb,
    get_dashboard_kb,
    get_companies_kb,
    get_pagination_row
)

__all__ = [
    "get_main_kb",
    "get_campaigns_kb",
    "get_dashboard_kb",
    "get_companies_kb",
    "get_pagination_row"
]
