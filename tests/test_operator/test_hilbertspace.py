from fractions import Fraction

import pytest
import numpy as np
from numpy.testing import assert_allclose

from qulat.operator import HomogeneousSpin


class StubRNG:
    """Always returns the same 'uniform' sample."""

    def __init__(self, u):
        self.u = u
        self.ncalls = 0

    def random(self, size=None):
        self.ncalls += 1
        if size is None:
            return self.u
        return np.full(size, self.u)


class TestConstruction:
    def test_spin_half_default(self):
        hs = HomogeneousSpin(3)
        assert hs.nsites == 3
        assert hs.spin == Fraction(1, 2)
        assert hs.local_dim == 2
        assert hs.shape == (2, 2, 2)
        assert hs.size == 8
        assert hs.is_homogeneous
        assert_allclose(hs.levels, [-1, 1])

    @pytest.mark.parametrize("spin,d", [
        (Fraction(3, 2), 4), ("3/2", 4), (1.5, 4), (1, 3), (Fraction(5, 2), 6),
    ])
    def test_spin_parsing(self, spin, d):
        hs = HomogeneousSpin(2, spin)
        assert hs.local_dim == d
        assert hs.size == d**2

    def test_from_local_dim(self):
        hs = HomogeneousSpin.from_local_dim(4, 3)
        assert hs.spin == 1
        assert hs == HomogeneousSpin(4, 1)
        assert_allclose(hs.levels, [-2, 0, 2])

    @pytest.mark.parametrize("spin", [0, -1, Fraction(1, 3), 0.7, "spin"])
    def test_bad_spin(self, spin):
        with pytest.raises(ValueError):
            HomogeneousSpin(2, spin)

    @pytest.mark.parametrize("nsites", [0, -2, 2.5])
    def test_bad_nsites(self, nsites):
        with pytest.raises(ValueError):
            HomogeneousSpin(nsites)

    def test_bad_local_dim(self):
        with pytest.raises(ValueError):
            HomogeneousSpin.from_local_dim(2, 1)

    def test_indexable(self):
        assert HomogeneousSpin(62).indexable
        assert not HomogeneousSpin(63).indexable
        assert not HomogeneousSpin(64).indexable
        assert not HomogeneousSpin(40, 1).indexable

    def test_not_indexable_raises(self):
        hs = HomogeneousSpin(64)
        with pytest.raises(ValueError):
            hs.to_index(hs.state())
        with pytest.raises(ValueError):
            hs.set_from_index(hs.state(), 1)

    def test_value_object(self):
        a, b = HomogeneousSpin(3), HomogeneousSpin(3, "1/2")
        assert a == b
        assert hash(a) == hash(b)
        assert a != HomogeneousSpin(3, 1)
        assert a != HomogeneousSpin(4)
        assert len({a, b}) == 1

    def test_repr_str(self):
        hs = HomogeneousSpin(3, "3/2")
        assert repr(hs) == "HomogeneousSpin(nsites=3, spin=3/2, total_size=64)"
        assert str(hs) == ("Hilbert space with 3 identical spins 3/2 of "
                           "dimension 4")


class TestIndexing:
    def test_spin_half_example(self):
        hs = HomogeneousSpin(3)
        config = np.array([1.0, -1.0, 1.0])
        assert hs.to_index(config) == 6
        new = hs.set_from_index(hs.state(), 6)
        assert_allclose(new, [1, -1, 1])

    def test_lowest_and_highest(self):
        hs = HomogeneousSpin(4, 1)
        assert hs.to_index(hs.state()) == 1
        assert_allclose(hs.state(), [-2, -2, -2, -2])
        top = hs.set_from_index(hs.state(), hs.size)
        assert_allclose(top, [2, 2, 2, 2])

    def test_first_site_least_significant(self):
        hs = HomogeneousSpin(3, 1)
        assert_allclose(hs.set_from_index(hs.state(), 2), [0, -2, -2])
        assert_allclose(hs.set_from_index(hs.state(), 4), [-2, 0, -2])
        assert_allclose(hs.set_from_index(hs.state(), 10), [-2, -2, 0])

    @pytest.mark.parametrize("nsites,d", [(1, 2), (3, 2), (2, 3),
                                          (3, 4), (2, 5)])
    def test_all_states_roundtrip(self, nsites, d):
        hs = HomogeneousSpin.from_local_dim(nsites, d)
        configs = hs.all_states()
        assert configs.shape == (d**nsites, nsites)
        assert np.all(np.isin(configs, hs.levels))
        for i, config in enumerate(configs):
            assert hs.to_index(config) == i + 1
            assert_allclose(hs.set_from_index(hs.state(), i + 1), config)

    @pytest.mark.parametrize("dtype", [np.int8, np.int64, np.float32])
    def test_config_dtypes(self, dtype):
        hs = HomogeneousSpin(3, "3/2")
        config = hs.state(dtype=dtype)
        assert config.dtype == dtype
        hs.set_from_index(config, 27)
        assert hs.to_index(config) == 27

    @pytest.mark.parametrize("index", [0, -1, 9, 100])
    def test_bad_index(self, index):
        hs = HomogeneousSpin(3)
        with pytest.raises(ValueError):
            hs.set_from_index(hs.state(), index)

    def test_bad_config_shape(self):
        hs = HomogeneousSpin(3)
        with pytest.raises(ValueError):
            hs.to_index(np.array([1.0, -1.0]))

    def test_stacked_configs_rejected(self):
        hs = HomogeneousSpin(3)
        buf = np.full((4, 3), 7.0)
        with pytest.raises(ValueError):
            hs.set_from_index(buf[:2], 6)
        assert_allclose(buf, 7.0)
        configs = hs.all_states()[:2]
        with pytest.raises(ValueError):
            hs.to_index(configs)
        with pytest.raises(ValueError):
            hs.add_to_index(configs, 1)
        with pytest.raises(ValueError):
            hs.local_index(configs, [0, 1])
        with pytest.raises(ValueError):
            hs.dense_index(configs)

    @pytest.mark.parametrize("nsites,d", [(3, 2), (2, 3), (3, 4)])
    def test_dense_index(self, nsites, d):
        hs = HomogeneousSpin.from_local_dim(nsites, d)
        rows = [hs.dense_index(config) for config in hs.all_states()]
        assert sorted(rows) == list(range(hs.size))
        # site 0 most significant, highest value first
        top = np.full(nsites, d - 1.0)
        assert hs.dense_index(top) == 0
        assert hs.dense_index(hs.state()) == hs.size - 1
        config = top.copy()
        config[0] = d - 3
        assert hs.dense_index(config) == d**(nsites - 1)

    def test_add_to_index(self):
        hs = HomogeneousSpin(3, 1)
        config = hs.set_from_index(hs.state(), 5)
        hs.add_to_index(config, 3)
        assert hs.to_index(config) == 8
        hs.add_to_index(config, -7)
        assert hs.to_index(config) == 1
        with pytest.raises(ValueError):
            hs.add_to_index(config, -1)

    def test_local_index_single_site(self):
        hs = HomogeneousSpin(3, 1)
        config = np.array([2.0, -2.0, 0.0])
        assert hs.local_index(config, 0) == 3
        assert hs.local_index(config, 1) == 1
        assert hs.local_index(config, 2) == 2

    def test_local_index_multi_site(self):
        hs = HomogeneousSpin(3, 1)
        config = np.array([2.0, -2.0, 0.0])
        # levels are (2, 0, 1), the first site given is least significant
        assert hs.local_index(config, [0, 2]) == 2 + 1 * 3 + 1
        assert hs.local_index(config, [2, 0]) == 1 + 2 * 3 + 1
        assert hs.local_index(config, [0, 1, 2]) == hs.to_index(config)

    def test_local_index_bad_site(self):
        hs = HomogeneousSpin(3)
        with pytest.raises(ValueError):
            hs.local_index(hs.state(), 3)
        with pytest.raises(ValueError):
            hs.local_index(hs.state(), [0, 5])


class TestSetAt:
    def test_set_at(self):
        hs = HomogeneousSpin(3, 1)
        config = hs.state()
        old = hs.set_at(config, 1, 2)
        assert old == -2
        assert_allclose(config, [-2, 2, -2])

    def test_bad_site(self):
        hs = HomogeneousSpin(3)
        with pytest.raises(ValueError):
            hs.set_at(hs.state(), -1, 1)


class TestFlipAt:
    def test_spin_half(self):
        hs = HomogeneousSpin(3)
        config = np.array([1.0, -1.0, 1.0])
        rng = np.random.default_rng(42)
        state0 = rng.bit_generator.state

        old, new = hs.flip_at(rng, config, 1)
        assert (old, new) == (-1, 1)
        assert_allclose(config, [1, 1, 1])

        hs.flip_at(rng, config, 1)
        assert_allclose(config, [1, -1, 1])
        assert rng.bit_generator.state == state0

    @pytest.mark.parametrize("d", [3, 4, 6])
    def test_never_old_value(self, d):
        hs = HomogeneousSpin.from_local_dim(2, d)
        rng = np.random.default_rng(7)
        config = hs.state()
        for _ in range(200):
            before = config[0]
            old, new = hs.flip_at(rng, config, 0)
            assert old == before
            assert new == config[0]
            assert new != old
            assert new in hs.levels
            assert config[1] == -(d - 1)

    def test_uniform(self):
        hs = HomogeneousSpin(1, "3/2")
        rng = np.random.default_rng(1234)
        counts = {-3: 0, 1: 0, 3: 0}
        n = 3000
        for _ in range(n):
            config = np.array([-1.0])
            _, new = hs.flip_at(rng, config, 0)
            counts[int(new)] += 1
        for c in counts.values():
            assert abs(c - n / 3) < 150

    def test_single_draw(self):
        hs = HomogeneousSpin(2, 1)
        rng_a = np.random.default_rng(3)
        rng_b = np.random.default_rng(3)
        hs.flip_at(rng_a, hs.state(), 0)
        rng_b.random()
        assert rng_a.random() == rng_b.random()

    @pytest.mark.parametrize("old,expected", [(-3, 3), (-1, 3), (3, 1)])
    def test_top_boundary(self, old, expected):
        hs = HomogeneousSpin(1, "3/2")
        rng = StubRNG(np.nextafter(1.0, 0.0))
        config = np.array([float(old)])
        _, new = hs.flip_at(rng, config, 0)
        assert new == expected
        assert rng.ncalls == 1

    @pytest.mark.parametrize("old,expected", [(-3, -1), (-1, -3), (3, -3)])
    def test_bottom_boundary(self, old, expected):
        hs = HomogeneousSpin(1, "3/2")
        config = np.array([float(old)])
        _, new = hs.flip_at(StubRNG(0.0), config, 0)
        assert new == expected

    def test_bad_site(self):
        hs = HomogeneousSpin(2)
        with pytest.raises(ValueError):
            hs.flip_at(None, hs.state(), 2)


class TestRandomize:
    @pytest.mark.parametrize("d", [2, 3, 5])
    def test_valid_values(self, d):
        hs = HomogeneousSpin.from_local_dim(50, d)
        config = hs.randomize(np.random.default_rng(0), hs.state())
        assert np.all(np.isin(config, hs.levels))

    def test_uniform(self):
        hs = HomogeneousSpin(3000, 1)
        config = hs.randomize(np.random.default_rng(5), hs.state())
        for v in (-2, 0, 2):
            assert abs(np.sum(config == v) - 1000) < 150

    def test_batch(self):
        hs = HomogeneousSpin(4, "3/2")
        configs = np.zeros((10, 4))
        out = hs.randomize(np.random.default_rng(9), configs)
        assert out is configs
        assert np.all(np.isin(configs, hs.levels))
        with pytest.raises(ValueError):
            hs.randomize(np.random.default_rng(9), np.zeros((10, 3)))

    def test_int_config(self):
        hs = HomogeneousSpin(5, 1)
        config = hs.state(dtype=np.int8)
        hs.randomize(np.random.default_rng(2), config)
        assert config.dtype == np.int8
        assert np.all(np.isin(config, hs.levels))

    @pytest.mark.parametrize("d", [2, 3, 4, 7])
    def test_boundaries(self, d):
        hs = HomogeneousSpin.from_local_dim(3, d)
        top = hs.randomize(StubRNG(np.nextafter(1.0, 0.0)), hs.state())
        assert_allclose(top, [d - 1] * 3)
        bottom = hs.randomize(StubRNG(0.0), hs.state())
        assert_allclose(bottom, [-(d - 1)] * 3)

    def test_seeded(self):
        hs = HomogeneousSpin(20, 1)
        assert_allclose(hs.rand_state(seed=11), hs.rand_state(seed=11))
