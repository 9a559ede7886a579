import numpy as np

from ..solver import SolverProjectiveTransformation3DFivePlane
from .estimator import Estimator


def _unitPlanes(planes):
    norms = np.linalg.norm(planes, axis=1)
    with np.errstate(divide='ignore', invalid='ignore'):
        return planes / norms[:, None]


class EstimatorProjectiveTransformation3D(Estimator):
    """ 平面对应的三维射影变换估计器，数据每行为 [π1, π2] """

    def __init__(self):
        super().__init__(SolverProjectiveTransformation3DFivePlane)

    def _computeResiduals(self, data, model):
        """ 变换后的 π1 与 π2 之间的距离（单位化并忽略符号）"""
        try:
            transformed = model.transformPlanes(data[:, 0:4])
        except np.linalg.LinAlgError:
            return np.full(data.shape[0], np.inf)
        a = _unitPlanes(transformed)
        b = _unitPlanes(data[:, 4:8])
        return np.minimum(np.linalg.norm(a - b, axis=1), np.linalg.norm(a + b, axis=1))
