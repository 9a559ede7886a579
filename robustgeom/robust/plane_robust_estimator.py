import numpy as np

from ..estimator import EstimatorPlane
from ..refiner import PlaneRefiner
from .base_robust_estimator import BaseRobustEstimator


class PlaneRobustEstimator(BaseRobustEstimator):
    """ 由一组可能含有外点的三维点鲁棒拟合平面 """

    MINIMUM_SIZE = 3
    DEFAULT_THRESHOLD = 1e-7
    DEFAULT_STOP_THRESHOLD = 1e-7

    def __init__(self, points=None, **kwargs):
        super().__init__(**kwargs)
        self._points = None
        if points is not None:
            self.setPoints(points)

    def getPoints(self):
        return self._points

    def setPoints(self, points):
        """ (N,3) 非齐次三维点，N 至少为 3 """
        self._checkLocked()
        points = self._asRows(points, 3, "points")
        if points.shape[0] < self.MINIMUM_SIZE:
            raise ValueError(f"至少需要 {self.MINIMUM_SIZE} 个点，输入为 {points.shape[0]}")
        self._points = points

    def _correspondenceNumber(self):
        return None if self._points is None else self._points.shape[0]

    def _data(self):
        return np.ascontiguousarray(self._points)

    def _createEstimator(self):
        return EstimatorPlane()

    def _createRefiner(self, standard_deviation):
        return PlaneRefiner(fast=self._use_fast_refinement,
                            keep_covariance=self._keep_covariance,
                            standard_deviation=standard_deviation)
