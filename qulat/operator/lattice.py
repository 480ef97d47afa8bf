"""Lattices, as a set of vertices and the edges connecting them, for building
operators with.
"""
import itertools
import collections

from cytoolz import concat, unique


Edge = collections.namedtuple('Edge', ['src', 'dst'])
Edge.__doc__ = """An edge of a lattice, between the vertices ``src`` and
``dst``, with ``src < dst``."""


def sort_unique(edges):
    """Make sure there are no duplicate edges or self loops and that for each
    ``coo_a < coo_b``.
    """
    return tuple(sorted(
        tuple(sorted(edge))
        for edge in set(map(frozenset, edges))
        if len(edge) == 2
    ))


# ----------------------------------- 1D ------------------------------------ #

def edges_1d_chain(L, cyclic=False):
    """Return the graph edges of a finite 1D chain lattice. The nodes (sites)
    are labelled like ``i``.

    Parameters
    ----------
    L : int
        The number of sites.
    cyclic : bool, optional
        Whether to use periodic boundary conditions.

    Returns
    -------
    edges : tuple[(int, int)]
    """
    edges = [(i, i + 1) for i in range(L - 1)]
    if cyclic:
        edges.append((L - 1, 0))
    return sort_unique(edges)


# ----------------------------------- 2D ------------------------------------ #

def check_2d(coo, Lx, Ly, cyclic):
    """Check ``coo`` in inbounds for a maybe cyclic 2D lattice.
    """
    x, y = coo
    if (not cyclic) and not ((0 <= x < Lx) and (0 <= y < Ly)):
        return
    return (x % Lx, y % Ly)


def edges_2d_square(Lx, Ly, cyclic=False, cells=None):
    """Return the graph edges of a finite 2D square lattice. The nodes
    (sites) are labelled like ``(i, j)``.

    Parameters
    ----------
    Lx : int
        The number of cells along the x-direction.
    Ly : int
        The number of cells along the y-direction.
    cyclic : bool, optional
        Whether to use periodic boundary conditions.
    cells : list, optional
        A list of cells to use. If not given the cells used are
        ``itertools.product(range(Lx), range(Ly))``.

    Returns
    -------
    edges : tuple[((int, int), (int, int))]
    """
    if cells is None:
        cells = itertools.product(range(Lx), range(Ly))

    edges = []
    for i, j in cells:
        for coob in [(i, j + 1), (i + 1, j)]:
            coob = check_2d(coob, Lx, Ly, cyclic)
            if coob:
                edges.append(((i, j), coob))

    return sort_unique(edges)


def edges_2d_triangular(Lx, Ly, cyclic=False, cells=None):
    """Return the graph edges of a finite 2D triangular lattice. There is a
    single site per cell, and note the cells do not form a square tiling.
    The nodes (sites) are labelled like ``(i, j)``.

    Parameters
    ----------
    Lx : int
        The number of cells along the x-direction.
    Ly : int
        The number of cells along the y-direction.
    cyclic : bool, optional
        Whether to use periodic boundary conditions.
    cells : list, optional
        A list of cells to use. If not given the cells used are
        ``itertools.product(range(Lx), range(Ly))``.

    Returns
    -------
    edges : tuple[((int, int), (int, int))]
    """
    if cells is None:
        cells = itertools.product(range(Lx), range(Ly))

    edges = []
    for i, j in cells:
        for coob in [(i, j + 1), (i + 1, j), (i + 1, j - 1)]:
            coob = check_2d(coob, Lx, Ly, cyclic)
            if coob:
                edges.append(((i, j), coob))

    return sort_unique(edges)


# -------------------------------- lattice ---------------------------------- #

class Lattice:
    """A finite lattice, given by its vertices and the edges between them.
    The vertices, which can be labelled by any sortable, hashable 'coos', are
    mapped to the linear registers ``0, 1, ..., nv - 1`` which are then used
    as the sites of a Hilbert space.

    Parameters
    ----------
    edges : Iterable[tuple[hashable, hashable]]
        The edges, as pairs of coos. Repeated edges and self loops are
        dropped.
    coos : sequence of hashable, optional
        The coos of all vertices, in register order. If not given, the sorted
        coos appearing in ``edges`` are used. Must be supplied to include
        isolated vertices.
    """

    def __init__(self, edges, coos=None):
        edges = sort_unique(edges)
        if coos is None:
            coos = sorted(unique(concat(edges)))

        self._coos = tuple(coos)
        self._coo_to_vertex = {coo: i for i, coo in enumerate(self._coos)}
        if len(self._coo_to_vertex) != len(self._coos):
            raise ValueError("Repeated vertex coos given.")

        try:
            self._edges = tuple(sorted(
                Edge(*sorted((self._coo_to_vertex[a], self._coo_to_vertex[b])))
                for a, b in edges
            ))
        except KeyError as e:
            raise ValueError(f"Edge vertex {e.args[0]!r} not in coos.")

    @classmethod
    def from_edges(cls, edges, coos=None):
        """Construct a lattice from pairs of vertex coos."""
        return cls(edges, coos=coos)

    @classmethod
    def chain(cls, L, cyclic=False):
        """A 1D chain of ``L`` sites."""
        return cls(edges_1d_chain(L, cyclic=cyclic), coos=range(L))

    @classmethod
    def square(cls, Lx, Ly, cyclic=False):
        """A 2D ``Lx`` by ``Ly`` square lattice, with coos ``(i, j)``."""
        return cls(edges_2d_square(Lx, Ly, cyclic=cyclic),
                   coos=itertools.product(range(Lx), range(Ly)))

    @classmethod
    def triangular(cls, Lx, Ly, cyclic=False):
        """A 2D ``Lx`` by ``Ly`` triangular lattice, with coos ``(i, j)``."""
        return cls(edges_2d_triangular(Lx, Ly, cyclic=cyclic),
                   coos=itertools.product(range(Lx), range(Ly)))

    @classmethod
    def from_networkx(cls, G):
        """Construct a lattice from a ``networkx`` graph, keeping the node
        order of ``G``.
        """
        import networkx as nx

        if G.is_directed() or G.is_multigraph():
            G = nx.Graph(G)
        return cls(G.edges(), coos=G.nodes())

    @property
    def coos(self):
        """The coos of every vertex, in register order."""
        return self._coos

    def coo_to_vertex(self, coo):
        """Get the vertex (register) of ``coo``."""
        return self._coo_to_vertex[coo]

    @property
    def vertices(self):
        """The vertices, as registers."""
        return range(len(self._coos))

    @property
    def edges(self):
        """The edges between the vertices, as ``Edge(src, dst)``."""
        return self._edges

    @property
    def nv(self):
        """The number of vertices."""
        return len(self._coos)

    @property
    def ne(self):
        """The number of edges."""
        return len(self._edges)

    def __repr__(self):
        return f"{self.__class__.__name__}(nv={self.nv}, ne={self.ne})"
