"""Ships app services layer."""

from .ship_management import create_ship, update_ship

__all__ = [
    'create_ship',
    'update_ship',
]
