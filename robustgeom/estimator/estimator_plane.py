from ..solver import SolverPlaneThreePoint
from .estimator import Estimator


class EstimatorPlane(Estimator):
    """ 由三维点拟合平面的估计器，数据每行为点 [x, y, z] """

    def __init__(self):
        super().__init__(SolverPlaneThreePoint)

    def _computeResiduals(self, data, model):
        """ 每个点到平面的距离 """
        return model.signedDistance(data[:, 0:3])
