"""Tools for converting between 'spin configs' and their global index.

A spin config of a homogeneous Hilbert space with local dimension ``d`` is a
flat array where each entry is ``2m`` for a spin projection
``m in {-S, ..., S}``, ``S = (d - 1) / 2``, i.e. one of the values
``-(d - 1), -(d - 1) + 2, ..., d - 1``. The *level* of a value is its position
in this list, ``(v + d - 1) / 2``. The global index is the 1-based mixed radix
number formed by the levels, with the first site least significant.
"""

import numpy as np

from ..core import njit

nogil = True


@njit(nogil=nogil, inline="always")
def value_to_level(v, d):
    """Convert a spin value ``2m`` to its level in ``range(d)``."""
    return int((v + (d - 1)) / 2)


@njit(nogil=nogil, inline="always")
def level_to_value(k, d):
    """Convert a level in ``range(d)`` to its spin value ``2m``."""
    return k * 2 - (d - 1)


@njit(nogil=nogil)
def config_to_index(config, d):
    """Convert a spin config to its global index.

    Parameters
    ----------
    config : ndarray
        A spin config of shape (n,).
    d : int
        The local dimension shared by all sites.

    Returns
    -------
    int
        The 1-based global index.
    """
    r = 0
    stride = 1
    for i in range(config.size):
        r += value_to_level(config[i], d) * stride
        stride *= d
    return r + 1


@njit(nogil=nogil)
def index_into_config(config, index, d):
    """Inplace conversion of a global index to a spin config.

    Parameters
    ----------
    config : ndarray
        A spin config of shape (n,), it will be overwritten.
    index : int
        The 1-based global index to convert.
    d : int
        The local dimension shared by all sites.
    """
    r = index - 1
    for i in range(config.size):
        q = r // d
        config[i] = level_to_value(r - q * d, d)
        r = q


@njit(nogil=nogil)
def config_to_dense_index(config, d):
    """Convert a spin config to its 0-based row in the dense or sparse matrix
    of an operator. Unlike :func:`config_to_index` the first site is the most
    significant, and the highest spin value comes first on each site.
    """
    r = 0
    for i in range(config.size):
        r = r * d + (d - 1 - value_to_level(config[i], d))
    return r


@njit(nogil=nogil)
def local_levels_to_index(config, sites, d):
    """Mixed radix index of the levels of the chosen ``sites`` only, with
    ``sites[0]`` least significant.

    Parameters
    ----------
    config : ndarray
        A spin config of shape (n,).
    sites : ndarray[int64]
        The sites to include, in order.
    d : int
        The local dimension shared by all sites.

    Returns
    -------
    int
        The 1-based local index.
    """
    r = 0
    stride = 1
    for j in sites:
        r += value_to_level(config[j], d) * stride
        stride *= d
    return r + 1


@njit(nogil=nogil)
def all_configs_into(configs, d):
    """Fill ``configs``, of shape (d**n, n), with every spin config in order
    of increasing global index.
    """
    for r in range(configs.shape[0]):
        index_into_config(configs[r], r + 1, d)


def uniform_to_value(u, d):
    """Map uniform samples in ``[0, 1)`` evenly onto the ``d`` spin values.
    ``u * d`` can round up to ``d`` for ``u`` just below one, so the level is
    clipped.
    """
    k = np.minimum(np.floor(u * d), d - 1)
    return k * 2 - (d - 1)


@njit(nogil=nogil)
def config_coupling_numba(config, dims, coupling_map, atol):
    """Get the configs coupled to ``config`` by an operator, and the
    corresponding coefficients, i.e. the non-zero entries of its row.

    Parameters
    ----------
    config : ndarray
        The spin config of shape (n,).
    dims : ndarray[int64]
        The local dimension of every site.
    coupling_map : tuple[ndarray]
        The operator as flat arrays ``(term_ptr, sites, row_base, row_ptr,
        cols, cijs)``. The sites of term ``t`` are
        ``sites[term_ptr[t]:term_ptr[t + 1]]`` and row ``r`` of its local
        matrix is stored, like a csr matrix, in the entries
        ``row_ptr[row_base[t] + r]`` up to ``row_ptr[row_base[t] + r + 1]``
        of ``cols`` and ``cijs``.
    atol : float
        Coefficients that cancel to within ``atol`` times the largest
        contribution are dropped.

    Returns
    -------
    coupled_configs : ndarray
        Each distinct coupled config, shape (k, n).
    coeffs : ndarray
        The coefficient of each coupled config.
    """
    term_ptr, sites, row_base, row_ptr, cols, cijs = coupling_map
    n = config.size
    num_terms = term_ptr.size - 1

    # the row of each local matrix selected by config
    rows = np.empty(num_terms, dtype=np.int64)
    nmax = 0
    for t in range(num_terms):
        r = 0
        for j in range(term_ptr[t], term_ptr[t + 1]):
            d = dims[sites[j]]
            r = r * d + (d - 1 - value_to_level(config[sites[j]], d))
        rows[t] = row_base[t] + r
        nmax += row_ptr[rows[t] + 1] - row_ptr[rows[t]]

    configs = np.empty((nmax, n), dtype=config.dtype)
    coeffs = np.zeros(nmax, dtype=cijs.dtype)
    scales = np.zeros(nmax, dtype=np.float64)

    k = 0
    for t in range(num_terms):
        for e in range(row_ptr[rows[t]], row_ptr[rows[t] + 1]):
            configs[k, :] = config

            # decode the column, the last site of the term is least significant
            c = cols[e]
            for j in range(term_ptr[t + 1] - 1, term_ptr[t] - 1, -1):
                d = dims[sites[j]]
                configs[k, sites[j]] = (d - 1) - 2 * (c % d)
                c //= d

            match = -1
            for q in range(k):
                same = True
                for i in range(n):
                    if configs[q, i] != configs[k, i]:
                        same = False
                        break
                if same:
                    match = q
                    break

            if match < 0:
                match = k
                k += 1
            coeffs[match] += cijs[e]
            if abs(cijs[e]) > scales[match]:
                scales[match] = abs(cijs[e])

    keep = 0
    for q in range(k):
        if abs(coeffs[q]) > atol * scales[q]:
            configs[keep, :] = configs[q, :]
            coeffs[keep] = coeffs[q]
            keep += 1

    return configs[:keep], coeffs[:keep]
