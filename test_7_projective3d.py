import numpy as np
import pytest

from robustgeom import (ProjectiveTransformation3DRobustEstimator,
                        RobustEstimatorMethod)
from robustgeom.estimator import EstimatorProjectiveTransformation3D
from robustgeom.model import ProjectiveTransformation3D
from utils_helper import (makePlanePairs, makeQualityScores,
                          randomProjectiveTransformation3D)


def makeEstimator(method, seed=0, point_number=500):
    rng = np.random.default_rng(seed)
    T = randomProjectiveTransformation3D(rng)
    src_planes, dst_planes, outliers = makePlanePairs(rng, T, point_number=point_number)
    estimator = ProjectiveTransformation3DRobustEstimator(src_planes, dst_planes,
                                                          method=method,
                                                          quality_scores=makeQualityScores(rng, outliers),
                                                          random_generator=seed)
    estimator.setConfidence(0.9999)
    return estimator, np.c_[src_planes, dst_planes], outliers, T


def test_construction_validation():
    with pytest.raises(ValueError):
        ProjectiveTransformation3DRobustEstimator(np.ones((4, 4)), np.ones((4, 4)))
    with pytest.raises(ValueError):
        ProjectiveTransformation3DRobustEstimator(np.ones((6, 4)), np.ones((7, 4)))
    with pytest.raises(ValueError):
        ProjectiveTransformation3DRobustEstimator(quality_scores=np.ones(4))


def test_transform_points_and_planes_are_consistent():
    rng = np.random.default_rng(1)
    transformation = ProjectiveTransformation3D(randomProjectiveTransformation3D(rng))
    points = np.c_[rng.normal(size=(5, 3)), np.ones(5)]
    plane = np.array([[0.3, -0.2, 0.9, 0.1]])
    # 平面上的点变换后仍在变换后的平面上
    points -= np.outer(points @ plane[0] / (plane[0, 0:3] @ plane[0, 0:3]), np.r_[plane[0, 0:3], 0.0])
    transformed_points = transformation.transformPoints(points)
    transformed_plane = transformation.transformPlanes(plane)[0]
    np.testing.assert_allclose(transformed_points @ transformed_plane, 0.0, atol=1e-10)


@pytest.mark.parametrize('method', list(RobustEstimatorMethod))
def test_exact_recovery_without_refinement(method):
    estimator, data, outliers, T = makeEstimator(method)
    estimator.setResultRefined(False)

    transformation = estimator.estimate()

    residuals = EstimatorProjectiveTransformation3D().residuals(data[~outliers], transformation)
    assert np.all(residuals <= 1e-5)
    estimated = transformation.descriptor / transformation.descriptor[3, 3]
    np.testing.assert_allclose(estimated, T / T[3, 3], atol=1e-6)


def test_refined_covariance_shape():
    estimator, data, outliers, _ = makeEstimator(RobustEstimatorMethod.LMEDS, seed=2)
    estimator.setCovarianceKept(True)

    transformation = estimator.estimate()

    assert estimator.getCovariance().shape == (16, 16)
    residuals = EstimatorProjectiveTransformation3D().residuals(data[~outliers], transformation)
    assert np.all(residuals <= 1e-5)


def test_lmeds_bound_not_shortened_by_bad_candidate():
    estimator, data, outliers, T = makeEstimator(RobustEstimatorMethod.LMEDS)
    estimator.setResultRefined(False)
    estimator.setComputeAndKeepInliersEnabled(True)

    transformation = estimator.estimate()

    # 第一个样本包含外点，其宽松的估计阈值不能让迭代提前结束
    assert estimator.getStatistics().iteration_number > 1
    inliers_data = estimator.getInliersData()
    assert inliers_data.inlier_number <= np.count_nonzero(~outliers)
    assert not np.any(inliers_data.inliers[outliers])
    assert inliers_data.estimated_threshold < 1e-3
    residuals = EstimatorProjectiveTransformation3D().residuals(data[~outliers], transformation)
    assert np.all(residuals <= 1e-5)
