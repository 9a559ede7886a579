import numpy as np
import pytest

from robustgeom import HomographyRobustEstimator, RobustEstimatorMethod
from robustgeom.estimator import EstimatorHomography, normalizePoints
from utils_helper import makeHomographyPairs, makeQualityScores, randomHomography


def makeEstimator(method, seed=0, point_number=500, noise_std=0.0):
    rng = np.random.default_rng(seed)
    H = randomHomography(rng)
    src_pts, dst_pts, outliers = makeHomographyPairs(rng, H, point_number=point_number, noise_std=noise_std)
    estimator = HomographyRobustEstimator(src_pts, dst_pts,
                                          method=method,
                                          quality_scores=makeQualityScores(rng, outliers),
                                          random_generator=seed)
    estimator.setConfidence(0.9999)
    return estimator, np.c_[src_pts, dst_pts], outliers, H


def test_construction_validation():
    with pytest.raises(ValueError):
        HomographyRobustEstimator(np.zeros((3, 2)), np.zeros((3, 2)))
    with pytest.raises(ValueError):
        HomographyRobustEstimator(np.zeros((10, 2)), np.zeros((9, 2)))
    with pytest.raises(ValueError):
        HomographyRobustEstimator(np.zeros((10, 2)), None)
    with pytest.raises(ValueError):
        HomographyRobustEstimator(quality_scores=np.ones(3))


def test_normalize_points():
    points = np.random.default_rng(0).uniform(0.0, 100.0, size=(20, 2))
    normalized, transform = normalizePoints(points)

    np.testing.assert_allclose(np.mean(normalized, axis=0), 0.0, atol=1e-12)
    assert np.mean(np.linalg.norm(normalized, axis=1)) == pytest.approx(np.sqrt(2))
    np.testing.assert_allclose((np.c_[points, np.ones(20)] @ transform.T)[:, 0:2], normalized)


@pytest.mark.parametrize('method', list(RobustEstimatorMethod))
def test_exact_recovery_without_refinement(method):
    estimator, data, outliers, H = makeEstimator(method)
    estimator.setResultRefined(False)

    homography = estimator.estimate()

    assert estimator.isNormalizeSubsetEnabled()
    assert np.all(EstimatorHomography().residuals(data[~outliers], homography) <= 1e-5)


def test_unnormalized_subset():
    estimator, data, outliers, H = makeEstimator(RobustEstimatorMethod.RANSAC, seed=1)
    estimator.setResultRefined(False)
    estimator.setNormalizeSubsetEnabled(False)
    estimator.setThreshold(1e-2)

    homography = estimator.estimate()

    assert np.median(EstimatorHomography().residuals(data[~outliers], homography)) <= 1e-2


def test_refinement_with_noise_and_covariance():
    estimator, data, outliers, H = makeEstimator(RobustEstimatorMethod.RANSAC, seed=3, noise_std=0.2)
    estimator.setThreshold(1.0)
    estimator.setCovarianceKept(True)

    homography = estimator.estimate()

    assert estimator.getCovariance().shape == (9, 9)
    estimated = homography.descriptor / homography.descriptor[2, 2]
    np.testing.assert_allclose(estimated, H / H[2, 2], atol=0.05, rtol=0.01)
    assert np.mean(EstimatorHomography().residuals(data[~outliers], homography)) < 0.5


def test_fast_refinement():
    estimator, data, outliers, _ = makeEstimator(RobustEstimatorMethod.MSAC, seed=5, noise_std=0.2)
    estimator.setThreshold(1.0)
    estimator.setFastRefinementUsed(True)
    estimator.setCovarianceKept(True)

    homography = estimator.estimate()

    assert estimator.getCovariance().shape == (9, 9)
    assert np.mean(EstimatorHomography().residuals(data[~outliers], homography)) < 0.5


def test_orientation_check_rejects_flipped_sample():
    src = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    dst = src.copy()
    dst[2] = [1.0, -1.0]
    assert EstimatorHomography().isValidSample(np.c_[src, src], [0, 1, 2, 3])
    assert not EstimatorHomography().isValidSample(np.c_[src, dst], [0, 1, 2, 3])
    # 镜像翻转所有点的朝向，仍是有效的单应
    mirrored = np.c_[-src[:, 0], src[:, 1]]
    assert EstimatorHomography().isValidSample(np.c_[src, mirrored], [0, 1, 2, 3])


def test_orientation_reversing_homography():
    rng = np.random.default_rng(11)
    H = np.array([[-1.0, 0.0, 640.0],
                  [0.0, 1.0, 0.0],
                  [0.0, 0.0, 1.0]])
    src_pts, dst_pts, _ = makeHomographyPairs(rng, H, point_number=100, outlier_ratio=0.0)
    estimator = HomographyRobustEstimator(src_pts, dst_pts, method=RobustEstimatorMethod.RANSAC,
                                          random_generator=11)
    estimator.setMaxIterations(200)

    homography = estimator.estimate()

    np.testing.assert_allclose(homography.descriptor / homography.descriptor[2, 2], H, atol=1e-6)
    assert estimator.getInliersData().inlier_number == 100


def test_weighted_non_minimal_fit():
    rng = np.random.default_rng(7)
    H = randomHomography(rng)
    src_pts, dst_pts, outliers = makeHomographyPairs(rng, H, point_number=50, outlier_ratio=0.0)
    data = np.c_[src_pts, dst_pts]
    estimator = EstimatorHomography()

    assert estimator.estimateModelNonminimal(data, [0, 1, 2], 3) == []
    models = estimator.estimateModelNonminimal(data, list(range(50)), 50, weights=rng.uniform(0.5, 1.0, 50))

    assert len(models) == 1
    assert np.all(estimator.residuals(data, models[0]) <= 1e-6)


def test_refinement_starts_from_inlier_linear_fit():
    class RecordingRefiner:
        covariance = None

        def __init__(self):
            self.models = []

        def refine(self, data, inliers, model):
            self.models.append(model)
            return model, False

    unrefined_estimator, data, _, _ = makeEstimator(RobustEstimatorMethod.RANSAC, seed=3, noise_std=0.2)
    unrefined_estimator.setThreshold(1.0)
    unrefined_estimator.setResultRefined(False)
    unrefined = unrefined_estimator.estimate()

    estimator, _, _, _ = makeEstimator(RobustEstimatorMethod.RANSAC, seed=3, noise_std=0.2)
    estimator.setThreshold(1.0)
    refiner = RecordingRefiner()
    estimator._createRefiner = lambda standard_deviation: refiner
    homography = estimator.estimate()

    inliers = estimator.getInliersData().inliers
    cost = lambda model: np.sum(EstimatorHomography().residuals(data[inliers], model) ** 2)
    assert len(refiner.models) == 1
    assert homography is refiner.models[0]
    assert cost(homography) < cost(unrefined)
