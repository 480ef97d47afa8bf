"""
Quantum operators and spin configurations on lattices.
"""

# Core functions
from .core import (
    qarray, prod, issparse, identity, eye, kron, ikron, pkron, permute,
    DEFAULT_DTYPE,
)

# Generating local operators
from .gen.operators import (
    sigma_x, sigma_y, sigma_z, sigma_plus, sigma_minus, create, destroy,
    number, local_operator,
)

# Hilbert spaces, lattices and many-body operators
from .operator import (
    HomogeneousSpin, Lattice, Edge, LocalOperator, sigmax, sigmay, sigmaz,
    sigmap, sigmam, quantum_ising_hamiltonian, heisenberg_hamiltonian,
    lattice_average_operator, magnetization,
)


__all__ = [
    # Core ------------------------------------------------------------------ #
    'qarray', 'prod', 'issparse', 'identity', 'eye', 'kron', 'ikron',
    'pkron', 'permute', 'DEFAULT_DTYPE',
    # Gen ------------------------------------------------------------------- #
    'sigma_x', 'sigma_y', 'sigma_z', 'sigma_plus', 'sigma_minus', 'create',
    'destroy', 'number', 'local_operator',
    # Operator -------------------------------------------------------------- #
    'HomogeneousSpin', 'Lattice', 'Edge', 'LocalOperator', 'sigmax',
    'sigmay', 'sigmaz', 'sigmap', 'sigmam', 'quantum_ising_hamiltonian',
    'heisenberg_hamiltonian', 'lattice_average_operator', 'magnetization',
]
