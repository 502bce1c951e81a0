from .position import Position
