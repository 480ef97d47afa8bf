"""Predefined hamiltonians and observables built on a lattice:

- Quantum (transverse field) Ising model
- Heisenberg model
- Lattice averaged single site observables, e.g. the magnetization

"""
import logging

from .builder import LocalOperator, sigmax, sigmay, sigmaz

logger = logging.getLogger(__name__)


def make_edge_factory(coeff):
    """Ensure `coeff` is a function that takes the coos of two vertices and
    returns an edge coeff. A dict may be keyed by either ordering."""
    if isinstance(coeff, dict):

        def edge_factory(cooa, coob):
            try:
                return coeff[(cooa, coob)]
            except KeyError:
                return coeff[(coob, cooa)]

    elif callable(coeff):
        edge_factory = coeff

    else:

        def edge_factory(cooa, coob):
            # constant
            return coeff

    return edge_factory


def make_node_factory(coeff):
    """Ensure `coeff` is a function that takes the coo of a vertex and returns
    a node coeff."""
    if isinstance(coeff, dict):

        def node_factory(coo):
            return coeff[coo]

    elif callable(coeff):
        node_factory = coeff

    else:

        def node_factory(coo):
            # constant
            return coeff

    return node_factory


def quantum_ising_hamiltonian(lattice, hilbert, *, g, V, dtype=None):
    r"""Construct the quantum Ising hamiltonian on ``lattice``:

    .. math::

        H = \sum_{i}^{|V|} \frac{g}{2} \sigma^x_i
            + \sum_{\{i,j\}}^{|E|} \frac{V}{4} \sigma^z_i \sigma^z_j

    Parameters
    ----------
    lattice : Lattice
        The lattice, its vertices are used as the sites of ``hilbert``.
    hilbert : HomogeneousSpin
        The Hilbert space to build the operator in.
    g : float or dict or callable
        The transverse field. A dict keyed by vertex coo, or a callable taking
        one, can be supplied to have site-dependent fields.
    V : float or dict or callable
        The interaction strength. A dict keyed by pairs of vertex coos, or a
        callable taking two, can be supplied to have edge-dependent
        interactions.
    dtype : numpy.dtype, optional
        The default precision of the operator.

    Returns
    -------
    H : LocalOperator
    """
    g_factory = make_node_factory(g)
    V_factory = make_edge_factory(V)

    coos = lattice.coos
    H = LocalOperator(hilbert, dtype=dtype)

    for i in lattice.vertices:
        H += g_factory(coos[i]) / 2.0 * sigmax(hilbert, i)

    for e in lattice.edges:
        i, j = e.src, e.dst
        Vij = V_factory(coos[i], coos[j])
        H += Vij / 4.0 * sigmaz(hilbert, i) * sigmaz(hilbert, j)

    logger.debug("Built quantum ising hamiltonian %r on %r.", H, lattice)
    return H


def heisenberg_hamiltonian(lattice, hilbert, j=1.0, b=0.0, dtype=None):
    r"""Construct the Heisenberg hamiltonian on ``lattice``:

    .. math::

        H = \sum_{\{i,j\}}^{|E|} \frac{1}{4} \left(
            J_x \sigma^x_i \sigma^x_j +
            J_y \sigma^y_i \sigma^y_j +
            J_z \sigma^z_i \sigma^z_j
            \right)
            - \sum_{i}^{|V|} \frac{B}{2} \sigma^z_i

    Note positive values of :math:`J` correspond to antiferromagnetic
    coupling here.

    Parameters
    ----------
    lattice : Lattice
        The lattice, its vertices are used as the sites of ``hilbert``.
    hilbert : HomogeneousSpin
        The Hilbert space to build the operator in.
    j : float or tuple[float, float, float] or dict or callable, optional
        The exchange coupling constant(s). If a tuple of three floats is
        given, they are used for the xx, yy, and zz terms respectively. A dict
        keyed by pairs of vertex coos, or a callable taking two, can be
        supplied to have edge-dependent couplings.
    b : float or dict or callable, optional
        The magnetic field strength in the z-direction. A dict keyed by vertex
        coo, or a callable taking one, can be supplied to have site-dependent
        fields.
    dtype : numpy.dtype, optional
        The default precision of the operator.

    Returns
    -------
    H : LocalOperator
    """
    j_factory = make_edge_factory(j)
    b_factory = make_node_factory(b)

    coos = lattice.coos
    H = LocalOperator(hilbert, dtype=dtype)

    for e in lattice.edges:
        i, k = e.src, e.dst
        jik = j_factory(coos[i], coos[k])
        try:
            jx, jy, jz = jik
        except TypeError:
            jx, jy, jz = jik, jik, jik

        H += jx / 4.0 * sigmax(hilbert, i) * sigmax(hilbert, k)
        H += jy / 4.0 * sigmay(hilbert, i) * sigmay(hilbert, k)
        H += jz / 4.0 * sigmaz(hilbert, i) * sigmaz(hilbert, k)

    for i in lattice.vertices:
        H -= b_factory(coos[i]) / 2.0 * sigmaz(hilbert, i)

    logger.debug("Built heisenberg hamiltonian %r on %r.", H, lattice)
    return H


def lattice_average_operator(lattice, hilbert, op, dtype=None):
    """Construct the average of the single site operator ``op`` over every
    vertex of ``lattice``.

    Parameters
    ----------
    lattice : Lattice
        The lattice, its vertices are used as the sites of ``hilbert``.
    hilbert : HomogeneousSpin
        The Hilbert space to build the operator in.
    op : callable
        Called like ``op(hilbert, site)`` to create the operator on each
        site, e.g. :func:`~qulat.operator.sigmaz`.
    dtype : numpy.dtype, optional
        The default precision of the operator.

    Returns
    -------
    LocalOperator
    """
    if lattice.nv == 0:
        raise ValueError("Can't average over a lattice with no vertices.")

    O = LocalOperator(hilbert, dtype=dtype)
    for i in lattice.vertices:
        O += op(hilbert, i)

    return O / lattice.nv


def magnetization(lattice, hilbert, dtype=None):
    """The magnetization per site, i.e. the lattice average of σz."""
    return lattice_average_operator(lattice, hilbert, sigmaz, dtype=dtype)
