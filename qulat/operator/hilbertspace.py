"""Tools for defining homogeneous spin Hilbert spaces and manipulating spin
configurations living in them."""

import math
import numbers
from fractions import Fraction

import numpy as np

from . import configcore


_INT64_MAX = np.iinfo(np.int64).max


def parse_spin(spin):
    """Parse ``spin`` into an exact, positive multiple of one half.

    Parameters
    ----------
    spin : Fraction, int, float or str
        The spin quantum number, e.g. ``Fraction(1, 2)``, ``1``, ``1.5`` or
        ``"3/2"``.

    Returns
    -------
    Fraction
    """
    try:
        S = Fraction(spin)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid spin {spin!r}.")

    if (S <= 0) or ((2 * S).denominator != 1):
        raise ValueError(
            f"Invalid spin {spin!r}, must be a positive multiple of 1/2.")

    return S


def ensure_rng(rng):
    """Turn ``rng`` into a random number generator. ``None`` or an integer
    seed creates a new ``numpy.random.Generator``, anything else, such as an
    existing generator, is returned as is and used directly.
    """
    if rng is None or isinstance(rng, (numbers.Integral,
                                       np.random.SeedSequence)):
        return np.random.default_rng(rng)
    return rng


class HomogeneousSpin:
    """A Hilbert space of ``nsites`` identical spins ``S``, each with local
    dimension ``N = 2S + 1``. The space itself is an immutable value, the
    spin configurations it acts on are plain numpy arrays owned by the caller.

    Some nomenclature:

    - *value*: the state of a single site, stored as ``2m`` for the spin
      projection ``m in {-S, ..., S}``, i.e. one of
      ``-(N - 1), -(N - 1) + 2, ..., N - 1``.
    - *level*: the position of a value in that list, ``(v + N - 1) / 2``.
    - *config*: a flat array of the values of every site.
    - *index*: the 1-based global index of a config, the mixed radix number
      formed by its levels with site ``0`` least significant.
    - *local index*: the same for a subset of sites only.

    Parameters
    ----------
    nsites : int
        The number of sites.
    spin : Fraction, int, float or str, optional
        The spin of every site, by default spin-1/2.
    """

    __slots__ = ('_nsites', '_spin', '_d')

    def __init__(self, nsites, spin=Fraction(1, 2)):
        if (not isinstance(nsites, numbers.Integral)) or (nsites < 1):
            raise ValueError(
                f"Invalid number of sites {nsites!r}, must be an integer "
                ">= 1.")
        self._nsites = int(nsites)
        self._spin = parse_spin(spin)
        self._d = int(2 * self._spin) + 1

    @classmethod
    def from_local_dim(cls, nsites, d):
        """Construct the space given the local dimension ``d`` rather than the
        spin.
        """
        if (not isinstance(d, numbers.Integral)) or (d < 2):
            raise ValueError(
                f"Invalid local dimension {d!r}, must be an integer >= 2.")
        return cls(nsites, Fraction(int(d) - 1, 2))

    @property
    def nsites(self):
        """The total number of sites in the Hilbert space."""
        return self._nsites

    @property
    def spin(self):
        """The spin, as an exact fraction, shared by all sites."""
        return self._spin

    @property
    def local_dim(self):
        """The local dimension shared by all sites."""
        return self._d

    @property
    def shape(self):
        """The ordered local dimension of every site."""
        return (self._d,) * self._nsites

    @property
    def size(self):
        """The total dimension of the Hilbert space, as an exact integer."""
        return self._d ** self._nsites

    @property
    def indexable(self):
        """Whether every config can be given an int64 global index."""
        return self.size <= _INT64_MAX

    @property
    def is_homogeneous(self):
        return True

    @property
    def levels(self):
        """The allowed values of a single site, in increasing order."""
        d = self._d
        return np.arange(-(d - 1), d, 2)

    def level_of(self, value):
        """The level, in ``range(N)``, of a single site ``value``."""
        return int((value + (self._d - 1)) / 2)

    def value_of(self, level):
        """The single site value of ``level``."""
        return level * 2 - (self._d - 1)

    # ----------------------------- checks ---------------------------------- #

    def _check_site(self, site):
        if not (0 <= site < self._nsites):
            raise ValueError(
                f"Invalid site {site}, must be in range [0, {self._nsites}).")

    def _check_config(self, config, batch=False):
        # a batch only needs the sites along its last axis
        shape = np.shape(config)[-1:] if batch else np.shape(config)
        if shape != (self._nsites,):
            raise ValueError(
                f"Config of shape {np.shape(config)} does not match "
                f"{self._nsites} sites.")

    def _check_indexable(self):
        if not self.indexable:
            raise ValueError(
                f"{self} is too large to index with 64 bit integers.")

    # ---------------------------- configs ---------------------------------- #

    def state(self, dtype=np.float64):
        """A new config with every site in the lowest level ``-(N - 1)``.
        """
        return np.full(self._nsites, -(self._d - 1), dtype=dtype)

    def flip_at(self, rng, config, site):
        """Change the value of ``site`` in ``config``, in-place, to a different
        one chosen uniformly at random. For spin-1/2 this is deterministic.

        Parameters
        ----------
        rng : numpy.random.Generator
            The random number generator, a single ``rng.random()`` call is
            made when ``N > 2``.
        config : ndarray
            The config to modify.
        site : int
            The site to flip.

        Returns
        -------
        old, new : scalar
            The value of the site before and after the flip.
        """
        self._check_site(site)
        d = self._d
        old = config[site]

        if d == 2:
            new = -old
        else:
            # draw from the d - 1 levels, then skip over the current one
            u = ensure_rng(rng).random()
            k = min(math.floor(u * (d - 1)), d - 2)
            new = k * 2 - (d - 1)
            if new >= old:
                new += 2

        config[site] = new
        return old, config[site]

    def set_at(self, config, site, value):
        """Set ``site`` of ``config`` to ``value``, in-place, returning the old
        value. ``value`` is not checked to be a valid level.
        """
        self._check_site(site)
        old = config[site]
        config[site] = value
        return old

    def set_from_index(self, config, index):
        """Overwrite ``config`` with the config of global ``index``.

        Parameters
        ----------
        config : ndarray
            The config to overwrite, of shape ``(nsites,)``.
        index : int
            The 1-based global index, ``1 <= index <= size``.

        Returns
        -------
        config : ndarray
        """
        self._check_indexable()
        self._check_config(config)
        if not (1 <= index <= self.size):
            raise ValueError(
                f"Invalid index {index}, must be in range [1, {self.size}].")
        configcore.index_into_config(config, index, self._d)
        return config

    def add_to_index(self, config, delta):
        """Shift the global index of ``config`` by ``delta``, in-place."""
        return self.set_from_index(config, self.to_index(config) + delta)

    def randomize(self, rng, config):
        """Overwrite ``config``, or a batch of configs stacked along the first
        axis, with values drawn uniformly and independently for each site.
        """
        self._check_config(config, batch=True)
        u = ensure_rng(rng).random(np.shape(config))
        config[...] = configcore.uniform_to_value(u, self._d)
        return config

    def to_index(self, config):
        """Get the 1-based global index of ``config``, with site ``0`` least
        significant and the lowest level first.

        Note this is not the ordering of the rows of
        :meth:`LocalOperator.build_dense` and :meth:`build_sparse_matrix`,
        which put site ``0`` first and the highest level first. Use
        :meth:`dense_index` to locate ``config`` in those matrices.
        """
        self._check_indexable()
        self._check_config(config)
        return int(configcore.config_to_index(np.asarray(config), self._d))

    def dense_index(self, config):
        """Get the 0-based row (and column) of ``config`` in the matrices
        built by :class:`LocalOperator`, e.g. the diagonal entry
        ``A[i, i]`` with ``i = hilbert.dense_index(config)``.
        """
        self._check_indexable()
        self._check_config(config)
        return int(configcore.config_to_dense_index(np.asarray(config),
                                                    self._d))

    def local_index(self, config, sites):
        """Get the 1-based local index of ``config`` restricted to ``sites``.

        Parameters
        ----------
        config : ndarray
            The spin config.
        sites : int or sequence of int
            A single site, giving its level plus one, or an ordered sequence
            of sites, the first of which is least significant.

        Returns
        -------
        int
        """
        self._check_config(config)
        if np.ndim(sites) == 0:
            self._check_site(sites)
            return self.level_of(config[sites]) + 1

        sites = np.asarray(sites, dtype=np.int64)
        for site in sites:
            self._check_site(site)
        return int(configcore.local_levels_to_index(
            np.asarray(config), sites, self._d))

    def rand_state(self, seed=None, dtype=np.float64):
        """Get a new random config.

        Parameters
        ----------
        seed : None, int or numpy.random.Generator, optional
            The random seed or generator to use.
        dtype : dtype, optional
            The data type of the config.
        """
        return self.randomize(ensure_rng(seed), self.state(dtype=dtype))

    def all_states(self, dtype=np.float64):
        """Get every config, stacked in order of increasing global index.
        """
        self._check_indexable()
        configs = np.empty((self.size, self._nsites), dtype=dtype)
        configcore.all_configs_into(configs, self._d)
        return configs

    # --------------------------- value object ------------------------------ #

    def __eq__(self, other):
        if not isinstance(other, HomogeneousSpin):
            return NotImplemented
        return (self._nsites, self._spin) == (other._nsites, other._spin)

    def __hash__(self):
        return hash((self.__class__.__name__, self._nsites, self._spin))

    def __repr__(self):
        return (f"HomogeneousSpin(nsites={self._nsites}, spin={self._spin}, "
                f"total_size={self.size:_})")

    def __str__(self):
        return (f"Hilbert space with {self._nsites} identical spins "
                f"{self._spin} of dimension {self._d}")
