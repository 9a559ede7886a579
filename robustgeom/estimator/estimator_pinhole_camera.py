import numpy as np

from ..model import PinholeCamera
from ..solver import SolverPinholeCameraDLT
from .estimator import Estimator
from .estimator_homography import normalizePoints


class EstimatorPinholeCamera(Estimator):
    """ DLT 针孔相机估计器，数据每行为 [X, Y, Z, u, v] """

    def __init__(self, normalize_subset=True):
        super().__init__(SolverPinholeCameraDLT)
        # 是否在求解前规范化样本点以改善数值条件
        self.normalize_subset = normalize_subset

    def estimateModel(self, data, sample):
        """ 给定一组数据点，估计最小样本模型 """
        return self.__estimate(self.minimal_solver, data, sample, self.sampleSize())

    def estimateModelNonminimal(self, data, sample, sample_number, weights=None):
        """ 根据数据点集的非最小采样估计模型 """
        if sample_number < self.nonMinimalSampleSize():
            return []
        return self.__estimate(self.non_minimal_solver, data, sample, sample_number, weights)

    def __estimate(self, solver, data, sample, sample_number, weights=None):
        if not self.normalize_subset:
            return solver.estimateModel(data, sample, sample_number, weights=weights)

        rows = np.asarray(data, dtype=np.float64)[list(sample[:sample_number])]
        if weights is not None:
            weights = np.asarray(weights, dtype=np.float64)[list(sample[:sample_number])]
        normalized_3d, normalizing_transform_3d = normalizePoints(rows[:, 0:3])
        normalized_2d, normalizing_transform_2d = normalizePoints(rows[:, 3:5])

        models = solver.estimateModel(np.c_[normalized_3d, normalized_2d],
                                      None,
                                      sample_number,
                                      weights=weights)
        # P = T2^-1 P' T3
        return [PinholeCamera(np.linalg.inv(normalizing_transform_2d)
                              @ model.descriptor
                              @ normalizing_transform_3d) for model in models]

    def _computeResiduals(self, data, model):
        """ 重投影误差 """
        projected = model.project(data[:, 0:3])
        return np.linalg.norm(data[:, 3:5] - projected, axis=1)
