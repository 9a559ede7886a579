import numpy as np

from ..solver import SolverPoint3DThreePlane
from .estimator import Estimator


class EstimatorPoint3D(Estimator):
    """ 由平面求三维交点的估计器，数据每行为平面 [a, b, c, d] """

    def __init__(self):
        super().__init__(SolverPoint3DThreePlane)

    def _computeResiduals(self, data, model):
        """ 点到每个平面的距离 """
        point = model.descriptor
        normal_norms = np.linalg.norm(data[:, 0:3], axis=1)
        with np.errstate(divide='ignore', invalid='ignore'):
            return (data @ point) / (normal_norms * point[3])
