"""Functions for generating the dense matrices of single site operators.

A site of local dimension ``d`` is treated either as a spin ``S = (d - 1) / 2``
with basis ordered ``m = S, S - 1, ..., -S``, or as a bosonic mode truncated to
occupations ``0, 1, ..., d - 1``. All matrices are complex and immutable, since
they are cached.
"""
import functools

import numpy as np

from ..core import qarray, make_immutable, eye


def _spin_ms(d):
    """The ``m`` quantum numbers, from ``S`` down to ``-S``, of a spin with
    local dimension ``d``.
    """
    S = (d - 1) / 2
    return S, np.linspace(S, -S, d)


def _offdiag(D, k, dtype):
    op = qarray(np.diag(np.asarray(D, dtype=complex), k=k), dtype=dtype)
    make_immutable(op)
    return op


@functools.lru_cache(maxsize=32)
def sigma_x(d=2, dtype=complex):
    """The x Pauli operator generalized to local dimension ``d``, i.e.
    ``2 * S_x`` for a spin ``S = (d - 1) / 2``.

    Parameters
    ----------
    d : int, optional
        The local dimension, default 2 for spin-1/2.
    dtype : dtype, optional
        The data type of the matrix, complex by default.

    Returns
    -------
    qarray
        Immutable ``(d, d)`` matrix.

    Examples
    --------
    >>> sigma_x(3)
    qarray([[0.      +0.j, 1.414214+0.j, 0.      +0.j],
            [1.414214+0.j, 0.      +0.j, 1.414214+0.j],
            [0.      +0.j, 1.414214+0.j, 0.      +0.j]])
    """
    S = (d - 1) / 2
    a = np.arange(1, d)
    D = np.sqrt((S + 1) * 2 * a - a * (a + 1)).astype(complex)
    op = qarray(np.diag(D, k=1) + np.diag(D, k=-1), dtype=dtype)
    make_immutable(op)
    return op


@functools.lru_cache(maxsize=32)
def sigma_y(d=2, dtype=complex):
    """The y Pauli operator generalized to local dimension ``d``, i.e.
    ``2 * S_y`` for a spin ``S = (d - 1) / 2``.
    """
    S = (d - 1) / 2
    a = np.arange(1, d)
    D = 1.0j * np.sqrt((S + 1) * 2 * a - a * (a + 1))
    op = qarray(np.diag(D, k=-1) - np.diag(D, k=1), dtype=dtype)
    make_immutable(op)
    return op


@functools.lru_cache(maxsize=32)
def sigma_z(d=2, dtype=complex):
    """The z Pauli operator generalized to local dimension ``d``, i.e.
    ``diag(2S, 2S - 2, ..., -2S)``.
    """
    _, ms = _spin_ms(d)
    op = qarray(np.diag(2 * ms).astype(complex), dtype=dtype)
    make_immutable(op)
    return op


@functools.lru_cache(maxsize=32)
def sigma_minus(d=2, dtype=complex):
    """The spin lowering operator ``S_-`` for a spin ``S = (d - 1) / 2``.
    """
    S, ms = _spin_ms(d)
    ms = ms[:-1]
    return _offdiag(np.sqrt(S * (S + 1) - ms * (ms - 1)), -1, dtype)


@functools.lru_cache(maxsize=32)
def sigma_plus(d=2, dtype=complex):
    """The spin raising operator ``S_+`` for a spin ``S = (d - 1) / 2``.
    """
    S, ms = _spin_ms(d)
    ms = ms[1:]
    return _offdiag(np.sqrt(S * (S + 1) - ms * (ms + 1)), 1, dtype)


@functools.lru_cache(maxsize=32)
def destroy(d=2, dtype=complex):
    """The bosonic annihilation operator truncated to ``d`` levels.
    """
    return _offdiag(np.sqrt(np.arange(1, d)), 1, dtype)


@functools.lru_cache(maxsize=32)
def create(d=2, dtype=complex):
    """The bosonic creation operator truncated to ``d`` levels.
    """
    return _offdiag(np.sqrt(np.arange(1, d)), -1, dtype)


@functools.lru_cache(maxsize=32)
def number(d=2, dtype=complex):
    """The bosonic number operator truncated to ``d`` levels.
    """
    return _offdiag(np.arange(d), 0, dtype)


def _identity(d=2, dtype=complex):
    op = eye(d, dtype=dtype)
    make_immutable(op)
    return op


_LOCAL_OPERATORS = {
    'x': sigma_x,
    'y': sigma_y,
    'z': sigma_z,
    '+': sigma_plus, 'p': sigma_plus,
    '-': sigma_minus, 'm': sigma_minus,
    'a': destroy, 'destroy': destroy,
    'c': create, 'create': create,
    'n': number, 'number': number,
    'i': _identity,
}


def local_operator(label, d=2, dtype=complex):
    """Generate a single site operator by label.

    Parameters
    ----------
    label : str
        The type of operator, can be one of:
            - ``{'x', 'X'}``, ``{'y', 'Y'}``, ``{'z', 'Z'}``, pauli operators.
            - ``{'+', 'p'}``, spin raising operator.
            - ``{'-', 'm'}``, spin lowering operator.
            - ``{'a', 'destroy'}``, bosonic annihilation operator.
            - ``{'c', 'create'}``, bosonic creation operator.
            - ``{'n', 'number'}``, bosonic number operator.
            - ``{'i', 'I'}``, identity operator.
    d : int, optional
        The local dimension.
    dtype : dtype, optional
        The data type of the matrix, complex by default.

    Returns
    -------
    qarray
        The immutable operator.
    """
    try:
        fn = _LOCAL_OPERATORS[label.lower()]
    except KeyError:
        raise ValueError(
            f"Label '{label}' not understood, should be one of "
            "``['X', 'Y', 'Z', '+', '-', 'a', 'c', 'n', 'I']``.")
    return fn(d, dtype=dtype)
