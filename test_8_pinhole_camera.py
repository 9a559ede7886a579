import cv2
import numpy as np
import pytest

from robustgeom import (LockedError, PinholeCameraRobustEstimator,
                        RobustEstimatorListener, RobustEstimatorMethod)
from robustgeom.estimator import EstimatorPinholeCamera
from robustgeom.model import PinholeCamera
from robustgeom.refiner import CameraSuggestions
from utils_helper import (getReprojectionError, makeCameraProjections,
                          makeQualityScores, randomCamera)


def makeEstimator(method, seed=0, point_number=500, noise_std=0.0, skewness=0.0, **kwargs):
    rng = np.random.default_rng(seed)
    camera = randomCamera(rng, skewness=skewness)
    points3D, points2D, outliers = makeCameraProjections(rng, camera, point_number=point_number,
                                                         noise_std=noise_std)
    estimator = PinholeCameraRobustEstimator(points3D, points2D,
                                             method=method,
                                             quality_scores=makeQualityScores(rng, outliers),
                                             random_generator=seed,
                                             **kwargs)
    estimator.setConfidence(0.9999)
    return estimator, np.c_[points3D, points2D], outliers, camera


def test_construction_validation():
    rng = np.random.default_rng(0)
    with pytest.raises(ValueError):
        PinholeCameraRobustEstimator(rng.normal(size=(5, 3)), rng.normal(size=(5, 2)))
    with pytest.raises(ValueError):
        PinholeCameraRobustEstimator(rng.normal(size=(10, 3)), rng.normal(size=(9, 2)))
    with pytest.raises(ValueError):
        PinholeCameraRobustEstimator(quality_scores=np.ones(1))

    estimator = PinholeCameraRobustEstimator(rng.normal(size=(6, 3)), rng.normal(size=(6, 2)),
                                             method=RobustEstimatorMethod.RANSAC)
    assert estimator.isReady()


def test_decompose_recovers_intrinsics():
    rng = np.random.default_rng(1)
    camera = randomCamera(rng, skewness=2.0)
    scaled = PinholeCamera(-3.0 * camera.descriptor)

    parameters = scaled.intrinsicParameters()
    assert parameters['skewness'] == pytest.approx(2.0)
    assert parameters['horizontal_focal_length'] == pytest.approx(800.0)
    assert parameters['vertical_focal_length'] == pytest.approx(780.0)
    assert parameters['aspect_ratio'] == pytest.approx(780.0 / 800.0)
    np.testing.assert_allclose(parameters['principal_point'], [320.0, 240.0])

    intrinsic, rotation, center = scaled.decompose()
    np.testing.assert_allclose(rotation @ rotation.T, np.eye(3), atol=1e-10)
    assert np.linalg.det(rotation) == pytest.approx(1.0)
    rebuilt = PinholeCamera.fromDecomposition(intrinsic, rotation, center)
    points = rng.uniform(-1.0, 1.0, size=(10, 3))
    np.testing.assert_allclose(rebuilt.project(points), camera.project(points), atol=1e-8)


@pytest.mark.parametrize('method', list(RobustEstimatorMethod))
def test_exact_recovery_without_refinement(method):
    estimator, data, outliers, _ = makeEstimator(method)
    estimator.setThreshold(1e-3)
    estimator.setResultRefined(False)

    camera = estimator.estimate()

    assert np.all(EstimatorPinholeCamera().residuals(data[~outliers], camera) <= 1e-5)


@pytest.mark.parametrize('fast', [False, True])
def test_covariance_without_suggestions(fast):
    estimator, data, outliers, _ = makeEstimator(RobustEstimatorMethod.RANSAC, seed=2, noise_std=0.5)
    estimator.setThreshold(2.0)
    estimator.setCovarianceKept(True)
    estimator.setFastRefinementUsed(fast)

    camera = estimator.estimate()

    assert estimator.getCovariance().shape == (12, 12)
    assert np.mean(EstimatorPinholeCamera().residuals(data[~outliers], camera)) < 1.0


def test_covariance_with_decomposed_suggestions():
    estimator, _, _, _ = makeEstimator(RobustEstimatorMethod.RANSAC, seed=3, noise_std=0.5)
    estimator.setThreshold(2.0)
    estimator.setCovarianceKept(True)
    estimator.setSuggestSkewnessValueEnabled(True)
    estimator.setSuggestedSkewnessValue(0.0)

    estimator.estimate()

    assert estimator.getCovariance().shape == (11, 11)


def test_suggestion_setters():
    estimator = PinholeCameraRobustEstimator()
    assert not estimator.getSuggestions().isEnabled()

    estimator.setSuggestPrincipalPointEnabled(True)
    estimator.setSuggestedPrincipalPointValue([300.0, 200.0])
    estimator.setSuggestRotationEnabled(True)
    estimator.setSuggestCenterEnabled(True)
    estimator.setSuggestedCenterValue([0.0, 0.0, -10.0])
    estimator.setSuggestAspectRatioEnabled(True)
    estimator.setSuggestedAspectRatioValue(1.0)

    suggestions = estimator.getSuggestions()
    assert suggestions.isEnabled()
    np.testing.assert_allclose(suggestions.principal_point, [300.0, 200.0])
    np.testing.assert_allclose(suggestions.rotation, np.eye(3))
    assert suggestions.skewness is None
    assert suggestions.horizontal_focal_length is None

    with pytest.raises(ValueError):
        estimator.setSuggestedPrincipalPointValue([1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        estimator.setSuggestedRotationValue(np.eye(2))
    with pytest.raises(ValueError):
        estimator.setSuggestedCenterValue([1.0])


def test_suggestion_residuals():
    intrinsic = np.array([[800.0, 1.0, 320.0], [0.0, 780.0, 240.0], [0.0, 0.0, 1.0]])
    rotation = cv2.Rodrigues(np.array([0.0, 0.0, 0.1]))[0]
    suggestions = CameraSuggestions(skewness=0.0, aspect_ratio=1.0, rotation=np.eye(3),
                                    center=np.zeros(3))

    residuals = suggestions.residuals(intrinsic, rotation, np.array([1.0, 2.0, 3.0]))

    np.testing.assert_allclose(residuals, [1.0, 780.0 / 800.0 - 1.0, 0.0, 0.0, 0.1, 1.0, 2.0, 3.0],
                               atol=1e-12)


@pytest.mark.parametrize('fast', [False, True])
def test_skewness_suggestion_improves_conformance(fast):
    suggested = 0.0
    for trial in range(10):
        without, _, _, _ = makeEstimator(RobustEstimatorMethod.RANSAC, seed=10 + trial, noise_std=1.0)
        without.setThreshold(3.0)
        without.setFastRefinementUsed(fast)
        skewness_without = without.estimate().intrinsicParameters()['skewness']

        with_suggestion, _, _, _ = makeEstimator(RobustEstimatorMethod.RANSAC, seed=10 + trial, noise_std=1.0)
        with_suggestion.setThreshold(3.0)
        with_suggestion.setFastRefinementUsed(fast)
        with_suggestion.setSuggestSkewnessValueEnabled(True)
        with_suggestion.setSuggestedSkewnessValue(suggested)
        skewness_with = with_suggestion.estimate().intrinsicParameters()['skewness']

        if abs(suggested - skewness_with) <= abs(suggested - skewness_without):
            break
    else:
        pytest.fail("skewness suggestion never improved the estimate")


def test_mutators_locked_during_estimate():
    attempts = []

    class MutatingListener(RobustEstimatorListener):
        def onEstimateNextIteration(self, estimator, iteration):
            for mutate in (lambda: estimator.setSuggestSkewnessValueEnabled(True),
                           lambda: estimator.setNormalizeSubsetEnabled(False),
                           lambda: estimator.setPoints(np.zeros((6, 3)), np.zeros((6, 2))),
                           lambda: estimator.setQualityScores(np.ones(6)),
                           lambda: estimator.setListener(None)):
                with pytest.raises(LockedError):
                    mutate()
                attempts.append(iteration)

    estimator, _, _, _ = makeEstimator(RobustEstimatorMethod.MSAC, listener=MutatingListener())
    estimator.setThreshold(1e-3)
    estimator.estimate()

    assert attempts
    assert estimator.isListenerAvailable()
    assert not estimator.isSuggestSkewnessValueEnabled()
    assert estimator.isNormalizeSubsetEnabled()

    # 估计结束后同样的修改可以成功
    estimator.setSuggestSkewnessValueEnabled(True)
    estimator.setNormalizeSubsetEnabled(False)
    estimator.setQualityScores(np.ones(500))
    estimator.setListener(None)
    estimator.setPoints(np.zeros((6, 3)), np.zeros((6, 2)))
    assert estimator.isSuggestSkewnessValueEnabled()
    assert not estimator.isNormalizeSubsetEnabled()
    assert not estimator.isListenerAvailable()
    np.testing.assert_array_equal(estimator.getQualityScores(), np.ones(500))
    assert estimator.isReady()


def test_weighted_non_minimal_dlt():
    rng = np.random.default_rng(8)
    camera = randomCamera(rng)
    points3D, points2D, _ = makeCameraProjections(rng, camera, point_number=40, outlier_ratio=0.0)
    data = np.c_[points3D, points2D]

    for normalize in (True, False):
        estimator = EstimatorPinholeCamera(normalize_subset=normalize)
        models = estimator.estimateModelNonminimal(data, list(range(40)), 40, weights=np.ones(40))
        assert len(models) == 1
        assert getReprojectionError(points3D, points2D, models[0].descriptor) < 1e-8
