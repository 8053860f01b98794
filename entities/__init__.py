"""entities package – Boss and player ship."""

from .boss import Boss, Minion
from .ship import PlayerShip
