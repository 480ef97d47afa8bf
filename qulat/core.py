"""Core functions for manipulating quantum operators on lattices.
"""

import os
import operator
import itertools
import functools

import numpy as np
import scipy.sparse as sp
import numba as nb


# --------------------------------------------------------------------------- #
#                                Configuration                                #
# --------------------------------------------------------------------------- #

_NUMBA_CACHE = {
    'True': True, 'False': False,
}[os.environ.get('QULAT_NUMBA_CACHE', 'True')]

njit = functools.partial(nb.njit, cache=_NUMBA_CACHE)
"""Numba no-python jit, but obeying cache setting."""

DEFAULT_DTYPE = np.dtype(os.environ.get('QULAT_DEFAULT_DTYPE', 'float64'))
"""The default real precision used for operator coefficients."""


def prod(xs):
    """Product (as in multiplication) of an iterable.
    """
    return functools.reduce(operator.mul, xs, 1)


def make_immutable(mat):
    """Make the dense or sparse matrix ``mat`` read only, in-place.
    """
    if issparse(mat):
        mat.data.flags.writeable = False
        if mat.format in {'csr', 'csc', 'bsr'}:
            mat.indices.flags.writeable = False
            mat.indptr.flags.writeable = False
        elif mat.format == 'coo':
            mat.row.flags.writeable = False
            mat.col.flags.writeable = False
    else:
        mat.flags.writeable = False


class qarray(np.ndarray):
    """Thin subclass of :class:`numpy.ndarray` adding the conjugate transpose
    ``.H`` and compact printing. Tensor products are formed explicitly with
    :func:`kron`, so the elementwise numpy operators keep their meaning.
    """

    def __new__(cls, data, dtype=None, order=None):
        return np.asarray(data, dtype=dtype, order=order).view(cls)

    @property
    def H(self):
        if issubclass(self.dtype.type, np.complexfloating):
            return self.conjugate().transpose()
        return self.transpose()

    def __str__(self):
        with np.printoptions(precision=6, linewidth=120):
            return super().__str__()

    def __repr__(self):
        with np.printoptions(precision=6, linewidth=120):
            return super().__repr__()


def ensure_qarray(fn):
    """Decorator that wraps output as a ``qarray``.
    """

    @functools.wraps(fn)
    def qarray_fn(*args, **kwargs):
        out = fn(*args, **kwargs)
        if not isinstance(out, qarray):
            return qarray(out)
        return out

    return qarray_fn


def calc_dtype(dtype, iscomplex):
    """Work out the numpy dtype an operator should be built with, given a
    requested (possibly real) precision and whether any of its entries are
    complex. Real precisions are promoted to the matching complex one.

    Parameters
    ----------
    dtype : None, str or numpy.dtype
        The requested precision, ``None`` means :data:`DEFAULT_DTYPE`.
    iscomplex : bool
        Whether the operator has complex entries.

    Returns
    -------
    numpy.dtype
    """
    if dtype is None:
        dtype = DEFAULT_DTYPE
    dtype = np.dtype(dtype)

    if dtype in (np.float64, np.complex128):
        real, cplx = np.dtype(np.float64), np.dtype(np.complex128)
    elif dtype in (np.float32, np.complex64):
        real, cplx = np.dtype(np.float32), np.dtype(np.complex64)
    else:
        raise TypeError(f"Unsupported dtype {dtype}.")

    if iscomplex or dtype.kind == 'c':
        return cplx
    return real


def issparse(qob):
    """Checks if ``qob`` is explicitly sparse.
    """
    return isinstance(qob, sp.spmatrix)


# --------------------------------------------------------------------------- #
#                              Tensor products                                #
# --------------------------------------------------------------------------- #

@ensure_qarray
def kron_dense(a, b):
    """Kronecker product of two dense matrices, by broadcasting ``a`` over
    the blocks of the output.
    """
    a, b = np.asarray(a), np.asarray(b)
    m, n = a.shape
    p, q = b.shape
    return (a.reshape(m, 1, n, 1) * b.reshape(1, p, 1, q)).reshape(m * p,
                                                                   n * q)


def kron_dispatch(a, b, stype=None):
    """Kronecker product of two matrices, sparse if either of them is.
    """
    if issparse(a) or issparse(b):
        return sp.kron(a, b, format=stype or "csr")
    return kron_dense(a, b)


@ensure_qarray
def _identity_dense(d, dtype=complex):
    return np.eye(d, dtype=dtype)


def identity(d, sparse=False, stype="csr", dtype=complex):
    """Return the identity of dimension ``d``.

    Parameters
    ----------
    d : int
        Dimension of identity.
    sparse : bool, optional
        Whether to output in sparse form.
    stype : str, optional
        If sparse, what format to use.
    dtype : dtype, optional
        The data type, complex by default.

    Returns
    -------
    qarray or sparse matrix
    """
    if sparse:
        return sp.eye(d, dtype=dtype, format=stype)
    return _identity_dense(d, dtype=dtype)


eye = identity
"""Alias for :func:`identity`."""


def kron(*ops, stype=None):
    """Kronecker product of any number of dense or sparse matrices, with the
    first matrix acting on the most significant subsystem.

    Parameters
    ----------
    ops : sequence of matrices
        The matrices to tensor together.
    stype : str, optional
        The format of a sparse output, by default 'csr'.

    Returns
    -------
    qarray or sparse matrix

    Examples
    --------
    >>> kron(sigma_z(2), eye(2)).real
    qarray([[ 1.,  0.,  0.,  0.],
            [ 0.,  1.,  0.,  0.],
            [ 0.,  0., -1., -0.],
            [ 0.,  0., -0., -1.]])
    """
    X = functools.reduce(kron_dispatch, ops)
    if issparse(X) and stype is not None:
        return X.asformat(stype)
    return X


def ikron(ops, dims, inds, sparse=None, stype=None):
    """Place one or more operators on some subsystems of a larger space,
    padding every other subsystem with the identity.

    Parameters
    ----------
    ops : matrix or sequence of matrices
        The operator(s) to place. If there are fewer operators than ``inds``
        they are cycled through.
    dims : sequence of int
        The dimension of every subsystem.
    inds : int or sequence of int
        The subsystem(s) to place the operator(s) on. The dimension of each
        must match the size of the operator placed there.
    sparse : bool, optional
        Whether to build a sparse matrix, by default only if any of ``ops``
        is sparse.
    stype : str, optional
        The format of a sparse output, by default 'csr'.

    Returns
    -------
    qarray or sparse matrix

    See Also
    --------
    kron, pkron
    """
    if isinstance(ops, (np.ndarray, sp.spmatrix)):
        ops = (ops,)
    if np.ndim(inds) == 0:
        inds = (inds,)
    if sparse is None:
        sparse = any(issparse(op) for op in ops)

    placed = dict(zip(inds, itertools.cycle(ops)))
    dtype = functools.reduce(np.promote_types,
                             (op.dtype for op in placed.values()))

    factors = []
    d_id = 1  # size of the identity accumulated since the last placed op
    for i, d in enumerate(dims):
        if i not in placed:
            d_id *= d
            continue

        op = placed[i]
        if op.shape != (d, d):
            raise ValueError(
                f"Operator of shape {op.shape} can't be placed on subsystem "
                f"{i} of dimension {d}.")
        if d_id > 1:
            factors.append(eye(d_id, sparse=sparse, stype="coo", dtype=dtype))
            d_id = 1
        factors.append(op)

    if d_id > 1:
        factors.append(eye(d_id, sparse=sparse, stype="coo", dtype=dtype))

    X = kron(*factors, stype=stype)

    if sparse and not issparse(X):
        X = sp.csr_matrix(X)
        if stype is not None:
            X = X.asformat(stype)

    return X


@ensure_qarray
def _permute_dense(p, dims, perm):
    p, perm = np.asarray(p), np.asarray(perm)
    d = prod(dims)
    return (p.reshape([*dims, *dims])
            .transpose([*perm, *(perm + len(dims))])
            .reshape([d, d]))


def _permute_sparse(a, dims, perm):
    dims, perm = np.asarray(dims), np.asarray(perm)
    d = prod(dims)

    # the digits of every basis state, and its position once they are permuted
    digits = np.unravel_index(np.arange(d), tuple(dims))
    new = np.ravel_multi_index(tuple(digits[p] for p in perm),
                               tuple(dims[perm]))

    P = sp.csr_matrix((np.ones(d, dtype=a.dtype), (new, np.arange(d))),
                      shape=(d, d))
    return P @ a @ P.T


def permute(p, dims, perm):
    """Permute the subsystems of an operator, so that new subsystem ``k`` is
    old subsystem ``perm[k]``.

    Parameters
    ----------
    p : dense or sparse operator
        Operator to permute.
    dims : sequence of int
        The dimension of every subsystem, in the current order.
    perm : sequence of int
        The new order of ``range(len(dims))``.

    Returns
    -------
    qarray or sparse matrix
    """
    if issparse(p):
        return _permute_sparse(p, dims, perm)
    return _permute_dense(p, dims, perm)


def pkron(op, dims, inds, **ikron_opts):
    """Place an operator acting on several, possibly non-adjacent and
    unordered, subsystems of a larger space. The subsystems of ``op`` are
    ordered like ``inds``.

    Parameters
    ----------
    op : dense or sparse operator
        The operator to place, of size ``prod(dims[i] for i in inds)``.
    dims : sequence of int
        The dimension of every subsystem.
    inds : sequence of int
        The subsystems ``op`` acts on.
    ikron_opts
        Supplied to :func:`ikron` when padding is needed.

    Returns
    -------
    qarray or sparse matrix

    See Also
    --------
    ikron, permute

    Examples
    --------
    Take ``X`` on subsystem 0 and ``Z`` on subsystem 1 and move them to
    subsystems 2 and 0 of a larger space:

    >>> XZ = kron(sigma_x(2), sigma_z(2))
    >>> ZIX = pkron(XZ, dims=[2, 3, 2], inds=[2, 0])
    >>> np.allclose(ZIX, kron(sigma_z(2), eye(3), sigma_x(2)))
    True
    """
    dims = tuple(dims)
    inds = tuple(int(i) for i in np.atleast_1d(inds))
    rest = tuple(i for i in range(len(dims)) if i not in inds)

    # current order of the subsystems, after padding
    order = inds + rest
    if rest:
        op = ikron(op, [prod(dims[i] for i in inds),
                        prod(dims[i] for i in rest)], 0, **ikron_opts)

    perm = np.argsort(order)
    if np.array_equal(perm, np.arange(len(dims))):
        return op
    return permute(op, [dims[i] for i in order], perm)
