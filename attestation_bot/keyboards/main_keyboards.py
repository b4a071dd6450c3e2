"""
Main keyboard layouts for bot.
"""
from aiogram.types import (
    ReplyKeyboardMarkup,
    KeyboardButton
)

from ..services.models import Role

CAMPAIGNS_BUTTON = "📋 Campaigns"
DASHBOARD_BUTTON = "📊 Dashboard"
WHOAMI_BUTTON = "🪪 My access"


def get_main_kb(role: Role = Role.EMPLOYEE) -> ReplyKeyboardMarkup:
    """
    Get main keyboard based on user role.
    
    Args:
        role: Resolved attestation role of the user
        
    Returns:
        ReplyKeyboardMarkup with appropriate buttons
    """
    if role == Role.EMPLOYEE:
        keyboard = [
            [KeyboardButton(text=WHOAMI_BUTTON)]
        ]
    else:
        keyboard = [
            [
                KeyboardButton(text=CAMPAIGNS_BUTTON),
                KeyboardButton(text=DASHBOARD_BUTTON)
            ],
            [KeyboardButton(text=WHOAMI_BUTTON)]
        ]
    
    return ReplyKeyboardMarkup(
        keyboard=keyboard,
        resize_keyboard=True,
        input_field_placeholder="Choose an option ..."
    )
