import numpy as np

from ..estimator import EstimatorPoint3D
from ..model import CoordinatesType
from ..refiner import Point3DRefiner
from .base_robust_estimator import BaseRobustEstimator


class Point3DRobustEstimator(BaseRobustEstimator):
    """ 由一组可能含有外点的平面鲁棒估计它们的公共交点 """

    MINIMUM_SIZE = 3
    DEFAULT_THRESHOLD = 1e-7
    DEFAULT_STOP_THRESHOLD = 1e-7
    DEFAULT_REFINEMENT_COORDINATES_TYPE = CoordinatesType.INHOMOGENEOUS

    def __init__(self, planes=None, **kwargs):
        """
        参数
        ----------
        planes : numpy 可选
            (N,4) 平面系数 [a, b, c, d]，N 至少为 3
        """
        super().__init__(**kwargs)
        self._planes = None
        self._refinement_coordinates_type = self.DEFAULT_REFINEMENT_COORDINATES_TYPE
        if planes is not None:
            self.setPlanes(planes)

    def getPlanes(self):
        return self._planes

    def setPlanes(self, planes):
        self._checkLocked()
        planes = self._asRows(planes, 4, "planes")
        if planes.shape[0] < self.MINIMUM_SIZE:
            raise ValueError(f"至少需要 {self.MINIMUM_SIZE} 个平面，输入为 {planes.shape[0]}")
        self._planes = planes

    def getRefinementCoordinatesType(self):
        return self._refinement_coordinates_type

    def setRefinementCoordinatesType(self, coordinates_type):
        """ 细化使用非齐次 (3 参数) 或齐次 (4 参数) 坐标 """
        self._checkLocked()
        self._refinement_coordinates_type = CoordinatesType(coordinates_type)

    def _correspondenceNumber(self):
        return None if self._planes is None else self._planes.shape[0]

    def _data(self):
        return np.ascontiguousarray(self._planes)

    def _createEstimator(self):
        return EstimatorPoint3D()

    def _createRefiner(self, standard_deviation):
        return Point3DRefiner(coordinates_type=self._refinement_coordinates_type,
                              fast=self._use_fast_refinement,
                              keep_covariance=self._keep_covariance,
                              standard_deviation=standard_deviation)
