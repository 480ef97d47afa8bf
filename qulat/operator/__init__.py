"""Tools for consistently defining operators and hamiltonians on lattices of
spins, which can then be built out into matrices, or applied to individual
spin configurations.
"""

from .builder import (
    LocalOperator,
    create,
    destroy,
    number,
    sigmam,
    sigmap,
    sigmax,
    sigmay,
    sigmaz,
)
from .hilbertspace import (
    HomogeneousSpin,
)
from .lattice import (
    Edge,
    Lattice,
    edges_1d_chain,
    edges_2d_square,
    edges_2d_triangular,
)
from .models import (
    heisenberg_hamiltonian,
    lattice_average_operator,
    magnetization,
    quantum_ising_hamiltonian,
)

__all__ = (
    "create",
    "destroy",
    "Edge",
    "edges_1d_chain",
    "edges_2d_square",
    "edges_2d_triangular",
    "heisenberg_hamiltonian",
    "HomogeneousSpin",
    "Lattice",
    "lattice_average_operator",
    "LocalOperator",
    "magnetization",
    "number",
    "quantum_ising_hamiltonian",
    "sigmam",
    "sigmap",
    "sigmax",
    "sigmay",
    "sigmaz",
)
