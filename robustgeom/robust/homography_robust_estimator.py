import numpy as np

from ..estimator import EstimatorHomography
from ..refiner import HomographyRefiner
from .base_robust_estimator import BaseRobustEstimator


class HomographyRobustEstimator(BaseRobustEstimator):
    """ 由二维点对应鲁棒估计单应矩阵 """

    MINIMUM_SIZE = 4
    DEFAULT_THRESHOLD = 1e-3
    DEFAULT_STOP_THRESHOLD = 1e-3
    DEFAULT_NORMALIZE_SUBSET = True

    def __init__(self, input_points=None, output_points=None, **kwargs):
        """
        参数
        ----------
        input_points : numpy 可选
            (N,2) 源图像中的点
        output_points : numpy 可选
            (N,2) 目标图像中的对应点
        """
        super().__init__(**kwargs)
        self._input_points = None
        self._output_points = None
        self._normalize_subset = self.DEFAULT_NORMALIZE_SUBSET
        if input_points is not None or output_points is not None:
            self.setPoints(input_points, output_points)

    def getInputPoints(self):
        return self._input_points

    def getOutputPoints(self):
        return self._output_points

    def setPoints(self, input_points, output_points):
        self._checkLocked()
        input_points = self._asRows(input_points, 2, "input_points")
        output_points = self._asRows(output_points, 2, "output_points")
        if input_points.shape[0] < self.MINIMUM_SIZE:
            raise ValueError(f"至少需要 {self.MINIMUM_SIZE} 个点对，输入为 {input_points.shape[0]}")
        if input_points.shape[0] != output_points.shape[0]:
            raise ValueError(f"点对数目不一致：{input_points.shape[0]} != {output_points.shape[0]}")
        self._input_points = input_points
        self._output_points = output_points

    def isNormalizeSubsetEnabled(self):
        return self._normalize_subset

    def setNormalizeSubsetEnabled(self, normalize_subset):
        self._checkLocked()
        self._normalize_subset = bool(normalize_subset)

    def _correspondenceNumber(self):
        return None if self._input_points is None else self._input_points.shape[0]

    def _data(self):
        return np.ascontiguousarray(np.c_[self._input_points, self._output_points])

    def _createEstimator(self):
        return EstimatorHomography(normalize_subset=self._normalize_subset)

    def _createRefiner(self, standard_deviation):
        return HomographyRefiner(fast=self._use_fast_refinement,
                                 keep_covariance=self._keep_covariance,
                                 standard_deviation=standard_deviation)
