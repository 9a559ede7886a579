import numpy as np

from ..estimator import EstimatorProjectiveTransformation3D
from ..refiner import ProjectiveTransformation3DRefiner
from .base_robust_estimator import BaseRobustEstimator


class ProjectiveTransformation3DRobustEstimator(BaseRobustEstimator):
    """ 由平面对应鲁棒估计三维射影变换 """

    MINIMUM_SIZE = 5
    DEFAULT_THRESHOLD = 1e-6
    DEFAULT_STOP_THRESHOLD = 1e-6

    def __init__(self, input_planes=None, output_planes=None, **kwargs):
        super().__init__(**kwargs)
        self._input_planes = None
        self._output_planes = None
        if input_planes is not None or output_planes is not None:
            self.setPlanes(input_planes, output_planes)

    def getInputPlanes(self):
        return self._input_planes

    def getOutputPlanes(self):
        return self._output_planes

    def setPlanes(self, input_planes, output_planes):
        """ (N,4) 平面对应，N 至少为 5 """
        self._checkLocked()
        input_planes = self._asRows(input_planes, 4, "input_planes")
        output_planes = self._asRows(output_planes, 4, "output_planes")
        if input_planes.shape[0] < self.MINIMUM_SIZE:
            raise ValueError(f"至少需要 {self.MINIMUM_SIZE} 个平面对，输入为 {input_planes.shape[0]}")
        if input_planes.shape[0] != output_planes.shape[0]:
            raise ValueError(f"平面对数目不一致：{input_planes.shape[0]} != {output_planes.shape[0]}")
        self._input_planes = input_planes
        self._output_planes = output_planes

    def _correspondenceNumber(self):
        return None if self._input_planes is None else self._input_planes.shape[0]

    def _data(self):
        return np.ascontiguousarray(np.c_[self._input_planes, self._output_planes])

    def _createEstimator(self):
        return EstimatorProjectiveTransformation3D()

    def _createRefiner(self, standard_deviation):
        return ProjectiveTransformation3DRefiner(fast=self._use_fast_refinement,
                                                 keep_covariance=self._keep_covariance,
                                                 standard_deviation=standard_deviation)
