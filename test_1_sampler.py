import numpy as np
import pytest

from robustgeom.sampler import ProsacSampler, UniformSampler
from robustgeom.utils import UniformRandomGenerator, asGenerator


def test_as_generator_accepts_seed_generator_and_none():
    generator = np.random.default_rng(3)
    assert asGenerator(generator) is generator
    assert isinstance(asGenerator(None), np.random.Generator)
    assert asGenerator(7).integers(1000) == np.random.default_rng(7).integers(1000)
    with pytest.raises(ValueError):
        asGenerator("seed")


def test_unique_random_set_is_reproducible():
    first = UniformRandomGenerator(11)
    second = UniformRandomGenerator(11)
    first.resetGenerator(0, 9)
    second.resetGenerator(0, 9)

    sample = first.generateUniqueRandomSet(5)
    assert sample == second.generateUniqueRandomSet(5)
    assert len(set(sample)) == 5
    assert all(0 <= i <= 9 for i in sample)


def test_unique_random_set_skips_value():
    generator = UniformRandomGenerator(0)
    for _ in range(20):
        sample = generator.generateUniqueRandomSet(4, max=4, to_skip=2)
        assert sorted(sample) == [0, 1, 3, 4]


def test_uniform_sampler_draws_distinct_indices_from_pool():
    points = np.zeros((20, 3))
    sampler = UniformSampler(points, random_generator=1)
    pool = list(range(20))

    assert sampler.initialized
    for _ in range(50):
        sample = sampler.sample(pool, 3)
        assert len(set(sample)) == 3
        assert all(i in pool for i in sample)


def test_uniform_sampler_with_minimal_data_returns_full_set():
    sampler = UniformSampler(np.zeros((4, 4)), random_generator=2)
    for _ in range(10):
        assert sorted(sampler.sample([0, 1, 2, 3], 4)) == [0, 1, 2, 3]
    assert sampler.sample([0, 1, 2], 4) == []


def test_uniform_sampler_empty_container():
    assert not UniformSampler(np.zeros((0, 3))).initialized


def test_prosac_first_sample_uses_best_points():
    quality_scores = np.arange(30, dtype=np.float64)
    sampler = ProsacSampler(np.zeros((30, 3)), 3, quality_scores, random_generator=4)

    assert sampler.initialized
    # 质量得分最高的三个点的序号为 29, 28, 27
    assert sorted(sampler.sample(None, 3)) == [27, 28, 29]


def test_prosac_grows_to_uniform_sampling():
    quality_scores = np.linspace(1.0, 0.0, 20)
    sampler = ProsacSampler(np.zeros((20, 3)), 4, quality_scores,
                            ransac_convergence_iterations=100, random_generator=5)

    seen = set()
    for _ in range(150):
        sample = sampler.sample(None, 4)
        assert len(set(sample)) == 4
        seen.update(sample)

    assert sampler.kth_sample_number > sampler.ransac_convergence_iterations
    assert sampler.random_generator.range_max == 19
    assert seen == set(range(20))


def test_prosac_set_sample_number_grows_subset():
    sampler = ProsacSampler(np.zeros((50, 3)), 3, np.ones(50), ransac_convergence_iterations=1000)
    sampler.setSampleNumber(500)

    assert sampler.subset_size > 3
    assert sampler.growth_function[sampler.subset_size - 1] >= 500


def test_prosac_rejects_mismatched_quality_scores():
    assert not ProsacSampler(np.zeros((10, 3)), 3, np.ones(9)).initialized
    assert not ProsacSampler(np.zeros((2, 3)), 3, np.ones(2)).initialized
