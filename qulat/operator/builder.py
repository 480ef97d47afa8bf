"""Given a Hilbert space, build operators as sums of k-local terms, and
from them various representations such as dense or sparse matrices, or the
coupled configurations of a single spin config (for use with VMC etc.).
"""

import numbers
import warnings

import numpy as np
import scipy.sparse as sp

from ..core import (
    qarray,
    make_immutable,
    prod,
    permute,
    pkron,
    calc_dtype,
    DEFAULT_DTYPE,
)
from ..gen import operators as gen_ops
from .configcore import config_coupling_numba


def _sort_term(sites, mat, dims):
    """Reorder the subsystems of ``mat``, acting on ``sites`` (with local
    dimensions ``dims``), so that the sites are in increasing order.
    """
    perm = sorted(range(len(sites)), key=sites.__getitem__)
    if perm == list(range(len(sites))):
        return tuple(sites), mat
    sites = tuple(sites[p] for p in perm)
    return sites, permute(mat, dims, perm)


def _freeze(mat):
    mat = qarray(mat, dtype=complex)
    make_immutable(mat)
    return mat


class LocalOperator:
    """An operator given as a sum of k-local terms, each a dense matrix acting
    on a few sites of a Hilbert space. Supports the usual algebra (``+``,
    ``-``, ``*`` and ``@`` between operators, ``*`` and ``/`` with scalars),
    with every term product being formed on the union of the sites involved.

    Parameters
    ----------
    hilbert : HomogeneousSpin
        The Hilbert space the operator acts on, anything with ``nsites`` and
        ``shape`` attributes can be used.
    terms : sequence of (sequence of int, array_like), optional
        Initial terms, each given as the sites acted on and the matrix, which
        is ordered like the kronecker product over those sites.
    dtype : numpy.dtype or str, optional
        The default real precision used when building matrices. If the
        operator has complex terms the matching complex precision is used.
    atol : float, optional
        Relative tolerance. Terms that cancel to below ``atol`` times the
        largest entry that went into them are discarded, a term is never
        discarded for being small in absolute terms.
    """

    # make numpy scalars defer to ``__rmul__`` etc.
    __array_ufunc__ = None

    def __init__(self, hilbert, terms=(), dtype=None, atol=1e-12):
        self._hilbert = hilbert
        self._dtype = np.dtype(DEFAULT_DTYPE if dtype is None else dtype)
        self._atol = atol
        # mapping of sorted sites tuple -> immutable complex matrix
        self._terms = {}
        # flat arrays for ``config_coupling``, per build dtype
        self._coupling_maps = {}

        for sites, mat in terms:
            self.add_term(sites, mat)

    @classmethod
    def from_local(cls, hilbert, sites, mat, dtype=None):
        """Create an operator with a single term acting on ``sites``."""
        return cls(hilbert, terms=[(sites, mat)], dtype=dtype)

    @property
    def hilbert(self):
        """The Hilbert space this operator acts on."""
        return self._hilbert

    @property
    def dtype(self):
        """The default precision of this operator."""
        return self._dtype

    @property
    def nsites(self):
        return self._hilbert.nsites

    @property
    def terms(self):
        """A tuple of the terms, as pairs of the sorted sites acted on and the
        corresponding matrix.
        """
        return tuple(self._terms.items())

    @property
    def nterms(self):
        """The total number of distinct terms."""
        return len(self._terms)

    @property
    def locality(self):
        """The locality of the operator, the maximum support of any term."""
        if not self._terms:
            return 0
        return max(map(len, self._terms))

    @property
    def sites_used(self):
        """A tuple of the sorted sites acted on by any term."""
        return tuple(sorted({s for sites in self._terms for s in sites}))

    @property
    def iscomplex(self):
        """Whether any of the terms has non-negligible imaginary entries."""
        return any(
            np.abs(mat.imag).max() > self._atol * np.abs(mat).max()
            for mat in self._terms.values()
        )

    def _check_sites(self, sites):
        if len(set(sites)) != len(sites):
            raise ValueError(f"Repeated sites in {sites}.")
        for s in sites:
            if not (isinstance(s, numbers.Integral) and
                    0 <= s < self.nsites):
                raise ValueError(
                    f"Invalid site {s}, must be in range [0, {self.nsites}).")

    def _add_term_sorted(self, sites, mat, scale=None):
        """Add ``mat`` to the term on ``sites``, already sorted. The sum is
        dropped if it is within ``atol`` of zero relative to ``scale``, by
        default the largest entry of either part.
        """
        self._coupling_maps.clear()
        if scale is None:
            scale = np.abs(mat).max()

        try:
            old = self._terms[sites]
        except KeyError:
            pass
        else:
            scale = max(scale, np.abs(old).max())
            mat = old + mat

        if np.abs(mat).max() <= self._atol * scale:
            self._terms.pop(sites, None)
        else:
            self._terms[sites] = _freeze(mat)

    def add_term(self, sites, mat):
        """Add a term to the operator, in-place.

        Parameters
        ----------
        sites : int or sequence of int
            The site(s) the term acts on.
        mat : array_like
            The matrix of the term, of size ``prod(dims)`` where ``dims`` are
            the local dimensions of ``sites``, ordered like the kronecker
            product over ``sites`` in the order given.
        """
        if isinstance(sites, numbers.Integral):
            sites = (sites,)
        sites = tuple(sites)
        self._check_sites(sites)

        shape = self._hilbert.shape
        dims = [shape[s] for s in sites]
        d = prod(dims)
        mat = np.asarray(mat)
        if mat.shape != (d, d):
            raise ValueError(
                f"Matrix of shape {mat.shape} does not match sites {sites} "
                f"with local dimensions {dims}.")

        self._add_term_sorted(*_sort_term(sites, mat, dims))

    def copy(self):
        new = self.__class__(self._hilbert, dtype=self._dtype,
                             atol=self._atol)
        new._terms = dict(self._terms)
        return new

    def _embed(self, sites, mat, union):
        """Pad the matrix ``mat`` acting on ``sites`` to act on ``union``."""
        if sites == union:
            return mat
        shape = self._hilbert.shape
        dims = [shape[s] for s in union]
        inds = [union.index(s) for s in sites]
        return pkron(mat, dims, inds)

    # ----------------------------- algebra --------------------------------- #

    def _check_compatible(self, other):
        if other.hilbert != self._hilbert:
            raise ValueError(
                f"Operators act on different Hilbert spaces, {self._hilbert} "
                f"and {other.hilbert}.")

    def _scaled(self, x):
        new = self.__class__(self._hilbert, dtype=self._dtype,
                             atol=self._atol)
        for sites, mat in self._terms.items():
            new._add_term_sorted(sites, x * mat)
        return new

    def __add__(self, other):
        if isinstance(other, LocalOperator):
            self._check_compatible(other)
            new = self.copy()
            for sites, mat in other._terms.items():
                new._add_term_sorted(sites, mat)
            return new
        if isinstance(other, numbers.Number) and other == 0:
            # allows ``sum(ops)``
            return self.copy()
        return NotImplemented

    def __radd__(self, other):
        return self.__add__(other)

    def __neg__(self):
        return self._scaled(-1)

    def __sub__(self, other):
        if isinstance(other, LocalOperator):
            return self + (-other)
        return self.__add__(other)

    def __rsub__(self, other):
        return (-self).__add__(other)

    def __mul__(self, other):
        if isinstance(other, numbers.Number):
            return self._scaled(other)
        if not isinstance(other, LocalOperator):
            return NotImplemented

        self._check_compatible(other)
        new = self.__class__(self._hilbert, dtype=self._dtype,
                             atol=self._atol)
        for sa, ma in self._terms.items():
            for sb, mb in other._terms.items():
                union = tuple(sorted(set(sa) | set(sb)))
                mab = (np.asarray(self._embed(sa, ma, union)) @
                       np.asarray(self._embed(sb, mb, union)))
                scale = np.abs(ma).max() * np.abs(mb).max()
                new._add_term_sorted(union, mab, scale=scale)
        return new

    def __rmul__(self, other):
        if isinstance(other, numbers.Number):
            return self._scaled(other)
        return NotImplemented

    __matmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, numbers.Number):
            return self._scaled(1 / other)
        return NotImplemented

    @property
    def H(self):
        """The conjugate transpose of this operator."""
        new = self.__class__(self._hilbert, dtype=self._dtype,
                             atol=self._atol)
        for sites, mat in self._terms.items():
            new._add_term_sorted(sites, mat.H)
        return new

    def __eq__(self, other):
        if not isinstance(other, LocalOperator):
            return NotImplemented
        if (other.hilbert != self._hilbert) or (
            set(self._terms) != set(other._terms)
        ):
            return False
        for sites, mat in self._terms.items():
            a, b = np.asarray(mat), np.asarray(other._terms[sites])
            scale = max(np.abs(a).max(), np.abs(b).max())
            if not np.allclose(a, b, rtol=0.0, atol=self._atol * scale):
                return False
        return True

    # ---------------------------- building --------------------------------- #

    def get_dtype(self, dtype=None):
        """Calculate the numpy data type to build this operator with.

        Parameters
        ----------
        dtype : numpy.dtype or str, optional
            The requested precision, by default that of this operator. If the
            operator is complex the matching complex precision is used.

        Returns
        -------
        dtype : numpy.dtype
        """
        iscomplex = self.iscomplex
        if (dtype is not None) and iscomplex and (np.dtype(dtype).kind != 'c'):
            warnings.warn(
                f"Requested real dtype {dtype} for a complex operator, "
                "building with the matching complex dtype instead.")
        if dtype is None:
            dtype = self._dtype
        return calc_dtype(dtype, iscomplex)

    def build_sparse_matrix(self, stype="csr", dtype=None):
        """Build the sparse matrix of this operator on the full Hilbert space.

        Parameters
        ----------
        stype : str, optional
            The sparse matrix format to use, default 'csr'.
        dtype : numpy.dtype, optional
            The data type of the matrix, see :meth:`get_dtype`.

        Returns
        -------
        scipy.sparse matrix
        """
        dtype = self.get_dtype(dtype)
        dims = self._hilbert.shape
        D = prod(dims)

        A = sp.csr_matrix((D, D), dtype=dtype)
        for sites, mat in self._terms.items():
            mat = np.asarray(mat)
            if dtype.kind != "c":
                mat = mat.real
            mat = sp.csr_matrix(mat.astype(dtype))
            A = A + pkron(mat, dims, list(sites), sparse=True, stype="csr")

        return A.asformat(stype)

    def build_dense(self, dtype=None):
        """Get the dense (``qarray``) matrix representation of this operator.

        Parameters
        ----------
        dtype : numpy.dtype, optional
            The data type of the matrix, see :meth:`get_dtype`.

        Returns
        -------
        qarray
        """
        return qarray(self.build_sparse_matrix(stype="coo",
                                               dtype=dtype).toarray())

    def to_dense(self, dtype=None):
        return self.build_dense(dtype=dtype)

    def get_coupling_map(self, dtype=None):
        """Get the terms of this operator as the flat arrays used by
        :func:`~qulat.operator.configcore.config_coupling_numba`. Entries
        negligible compared to the largest in their term are left out. The
        result is cached per dtype until the operator is next modified.

        Parameters
        ----------
        dtype : numpy.dtype, optional
            The data type of the coefficients, see :meth:`get_dtype`.

        Returns
        -------
        tuple[ndarray]
        """
        dtype = self.get_dtype(dtype)
        try:
            return self._coupling_maps[dtype]
        except KeyError:
            pass

        term_ptr, sites, row_base = [0], [], []
        row_ptr, cols, cijs = [0], [], []
        for term_sites, mat in self._terms.items():
            sites.extend(term_sites)
            term_ptr.append(len(sites))

            mat = np.asarray(mat)
            if dtype.kind != 'c':
                mat = mat.real
            mat = np.where(np.abs(mat) > self._atol * np.abs(mat).max(),
                           mat, 0.0)
            mat = sp.csr_matrix(mat.astype(dtype))

            row_base.append(len(row_ptr) - 1)
            row_ptr.extend(mat.indptr[1:] + row_ptr[-1])
            cols.extend(mat.indices)
            cijs.extend(mat.data)

        coupling_map = (
            np.array(term_ptr, dtype=np.int64),
            np.array(sites, dtype=np.int64),
            np.array(row_base, dtype=np.int64),
            np.array(row_ptr, dtype=np.int64),
            np.array(cols, dtype=np.int64),
            np.array(cijs, dtype=dtype),
        )
        self._coupling_maps[dtype] = coupling_map
        return coupling_map

    def config_coupling(self, config, dtype=None):
        """Get an array of other configurations coupled to the given spin
        ``config`` by this operator, and the corresponding coupling
        coefficients, i.e. the non-zero entries of the row of the full matrix
        belonging to ``config``. This is for use with VMC for example.

        Within each local matrix, basis index ``k`` of a site with local
        dimension ``N`` corresponds to the spin value ``(N - 1) - 2k``, so
        the row is ``hilbert.dense_index(config)`` of :meth:`build_dense`.

        Parameters
        ----------
        config : ndarray
            The spin config to get the coupling for, of shape ``(nsites,)``.
        dtype : numpy.dtype, optional
            The data type of the coefficients, see :meth:`get_dtype`.

        Returns
        -------
        coupled_configs : ndarray
            Each distinct config coupled to ``config``, shape ``(k, nsites)``.
        coeffs : ndarray
            The corresponding coupling coefficients.
        """
        config = np.asarray(config)
        if config.shape != (self.nsites,):
            raise ValueError(
                f"Config of shape {config.shape} does not match "
                f"{self.nsites} sites.")

        coupling_map = self.get_coupling_map(dtype)
        dims = np.asarray(self._hilbert.shape, dtype=np.int64)
        return config_coupling_numba(config, dims, coupling_map, self._atol)

    def __repr__(self):
        s = [f"{self.__class__.__name__}("]
        s.append(f"nsites={self.nsites}")
        s.append(f", nterms={self.nterms}")
        s.append(f", locality={self.locality}")
        s.append(")")
        return "".join(s)


# --------------------------------------------------------------------------- #
#                          single site operators                              #
# --------------------------------------------------------------------------- #

def _site_operator(fn, hilbert, site, dtype=None):
    if not (0 <= site < hilbert.nsites):
        raise ValueError(
            f"Invalid site {site}, must be in range [0, {hilbert.nsites}).")
    d = hilbert.shape[site]
    return LocalOperator.from_local(hilbert, [site], fn(d), dtype=dtype)


def sigmax(hilbert, site, dtype=None):
    """Build a σx operator acting on ``site`` of ``hilbert``. A site with
    local dimension ``N`` is treated as a spin ``(N - 1) / 2``.

    Parameters
    ----------
    hilbert : HomogeneousSpin
        The many-body Hilbert space.
    site : int
        The site to act on.
    dtype : numpy.dtype, optional
        The default precision of the operator.

    Returns
    -------
    LocalOperator
    """
    return _site_operator(gen_ops.sigma_x, hilbert, site, dtype)


def sigmay(hilbert, site, dtype=None):
    """Build a σy operator acting on ``site`` of ``hilbert``. A site with
    local dimension ``N`` is treated as a spin ``(N - 1) / 2``.
    """
    return _site_operator(gen_ops.sigma_y, hilbert, site, dtype)


def sigmaz(hilbert, site, dtype=None):
    """Build a σz operator acting on ``site`` of ``hilbert``. A site with
    local dimension ``N`` is treated as a spin ``(N - 1) / 2``.
    """
    return _site_operator(gen_ops.sigma_z, hilbert, site, dtype)


def sigmap(hilbert, site, dtype=None):
    """Build a σ+ (raising) operator acting on ``site`` of ``hilbert``."""
    return _site_operator(gen_ops.sigma_plus, hilbert, site, dtype)


def sigmam(hilbert, site, dtype=None):
    """Build a σ- (lowering) operator acting on ``site`` of ``hilbert``."""
    return _site_operator(gen_ops.sigma_minus, hilbert, site, dtype)


def destroy(hilbert, site, dtype=None):
    """Build a bosonic destruction operator acting on ``site`` of ``hilbert``.
    A site with local dimension ``N`` is treated as a mode with occupations
    up to ``N - 1``.
    """
    return _site_operator(gen_ops.destroy, hilbert, site, dtype)


def create(hilbert, site, dtype=None):
    """Build a bosonic creation operator acting on ``site`` of ``hilbert``."""
    return _site_operator(gen_ops.create, hilbert, site, dtype)


def number(hilbert, site, dtype=None):
    """Build a bosonic number operator acting on ``site`` of ``hilbert``."""
    return _site_operator(gen_ops.number, hilbert, site, dtype)
