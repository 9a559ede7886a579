import numpy as np
import pytest

from robustgeom import PlaneRobustEstimator, RobustEstimatorMethod
from robustgeom.estimator import EstimatorPlane
from robustgeom.exceptions import RefinerError, RobustEstimatorError
from robustgeom.model import Plane
from robustgeom.refiner import Refiner
from utils_helper import makePointsOnPlane, makeQualityScores

PLANE = np.array([1.0, -2.0, 0.5, 3.0])


def makeEstimator(method, seed=0, point_number=500):
    rng = np.random.default_rng(seed)
    points, outliers = makePointsOnPlane(rng, PLANE, point_number=point_number)
    estimator = PlaneRobustEstimator(points,
                                     method=method,
                                     quality_scores=makeQualityScores(rng, outliers),
                                     random_generator=seed)
    estimator.setConfidence(0.9999)
    return estimator, points, outliers


def test_construction_validation():
    with pytest.raises(ValueError):
        PlaneRobustEstimator(np.zeros((2, 3)))
    with pytest.raises(ValueError):
        PlaneRobustEstimator(np.zeros((5, 4)))
    with pytest.raises(ValueError):
        PlaneRobustEstimator(quality_scores=[1.0, 2.0])


@pytest.mark.parametrize('method', list(RobustEstimatorMethod))
def test_exact_recovery_without_refinement(method):
    estimator, points, outliers = makeEstimator(method)
    estimator.setResultRefined(False)

    plane = estimator.estimate()

    assert np.all(EstimatorPlane().residuals(points[~outliers], plane) <= 1e-5)
    expected = PLANE / np.linalg.norm(PLANE[0:3])
    estimated = plane.descriptor / np.linalg.norm(plane.normal())
    estimated *= np.sign(estimated[0])
    np.testing.assert_allclose(estimated, expected, atol=1e-6)


def test_refined_covariance_shape():
    estimator, points, outliers = makeEstimator(RobustEstimatorMethod.PROMEDS)
    estimator.setCovarianceKept(True)

    plane = estimator.estimate()

    assert estimator.getCovariance().shape == (4, 4)
    assert np.all(EstimatorPlane().residuals(points[~outliers], plane) <= 1e-5)
    assert estimator.getInliersData().inliers is not None


def test_inlier_count_monotonic_in_threshold():
    rng = np.random.default_rng(4)
    points, _ = makePointsOnPlane(rng, PLANE, point_number=300, outlier_std=0.1)
    residuals = EstimatorPlane().residuals(points, Plane(PLANE))
    counts = [int(np.count_nonzero(residuals <= t)) for t in (1e-7, 1e-3, 1e-2, 0.1, 1.0)]
    assert counts == sorted(counts)


def test_refinement_failure_falls_back_to_unrefined_model():
    class FailingRefiner:
        covariance = None

        def refine(self, data, inliers, model):
            raise RefinerError("ill-conditioned")

    estimator, points, outliers = makeEstimator(RobustEstimatorMethod.RANSAC)
    estimator.setCovarianceKept(True)
    estimator._createRefiner = lambda standard_deviation: FailingRefiner()

    plane = estimator.estimate()

    assert estimator.getCovariance() is None
    assert np.all(EstimatorPlane().residuals(points[~outliers], plane) <= 1e-5)


class LineRefiner(Refiner):
    """ 直线 y = a x + b 的非齐次细化 """

    homogeneous = False

    def minimumInlierNumber(self):
        return 2

    def _parameters(self, model):
        return model

    def _model(self, parameters):
        return parameters

    def _residuals(self, data, parameters):
        return parameters[0] * data[:, 0] + parameters[1] - data[:, 1]


def test_covariance_at_kept_model_when_not_improved():
    x = np.arange(5.0)
    data = np.c_[x, 2.0 * x + 1.0]
    model = np.array([2.0, 1.0])
    refiner = LineRefiner(keep_covariance=True, standard_deviation=0.5)

    refined, improved = refiner.refine(data, np.ones(5, dtype=bool), model)

    # 初始代价为 0，细化不能再减小代价
    assert not improved
    assert refined is model
    jacobian = np.c_[x, np.ones(5)]
    np.testing.assert_allclose(refiner.covariance, np.linalg.inv(jacobian.T @ jacobian) * 0.25, rtol=1e-5)


def test_failed_estimate_keeps_previous_results():
    estimator, _, _ = makeEstimator(RobustEstimatorMethod.RANSAC)
    estimator.setCovarianceKept(True)
    estimator.estimate()
    inliers_data = estimator.getInliersData()
    covariance = estimator.getCovariance()
    statistics = estimator.getStatistics()

    class NoModelEstimator(EstimatorPlane):
        def estimateModel(self, data, sample):
            return []

    estimator._createEstimator = NoModelEstimator
    estimator.setMaxIterations(10)
    with pytest.raises(RobustEstimatorError):
        estimator.estimate()

    assert not estimator.isLocked()
    assert estimator.getInliersData() is inliers_data
    assert estimator.getCovariance() is covariance
    assert estimator.getStatistics() is statistics


def test_create_factory():
    estimator = PlaneRobustEstimator.create(RobustEstimatorMethod.MSAC, points=np.eye(3))
    assert isinstance(estimator, PlaneRobustEstimator)
    assert estimator.getMethod() == RobustEstimatorMethod.MSAC
    assert estimator.getThreshold() == PlaneRobustEstimator.DEFAULT_THRESHOLD
    assert estimator.isReady()
