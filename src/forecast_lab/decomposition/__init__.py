from .components import Decomposition
from .moving_average import moving_average, double_moving_average
from .methods import (
    classical_decomposition, stl_decomposition,
    x11_decomposition, seats_decomposition, decompose, find_x13
)

__all__ = [
    'Decomposition', 'moving_average', 'double_moving_average',
    'classical_decomposition', 'stl_decomposition',
    'x11_decomposition', 'seats_decomposition', 'decompose', 'find_x13'
]
