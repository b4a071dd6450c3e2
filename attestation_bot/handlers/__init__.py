"""
Handlers package - exports all handler routers
"""
from . import commands
from . import dashboard
from . import actions

__all__ = [
    'commands',
    'dashboard',
    'actions'
]
