import math as m

import numpy as np

from ..model import Homography
from ..solver import SolverHomographyFourPoint
from .estimator import Estimator


def normalizePoints(points):
    """ 规范化点集：平移到质心，并缩放使到质心的平均距离为 sqrt(维数)

    参数
    ----------
    points : numpy
        (N,d) 非齐次点

    返回
    ----------
    numpy, numpy
        归一化后的点，(d+1)x(d+1) 归一化变换矩阵
    """
    dimension = points.shape[1]
    # 计算质点坐标 均值
    mass_point = np.mean(points, axis=0)
    # 求解点离质点的平均距离
    average_distance = np.mean(np.linalg.norm(points - mass_point, axis=1))
    if average_distance == 0.0:
        ratio = 1.0
    else:
        ratio = m.sqrt(dimension) / average_distance

    normalizing_transform = np.eye(dimension + 1) * ratio
    normalizing_transform[dimension, dimension] = 1.0
    normalizing_transform[0:dimension, dimension] = -ratio * mass_point
    return (points - mass_point) * ratio, normalizing_transform


class EstimatorHomography(Estimator):
    """ 单应矩阵估计器，数据每行为点对 [x1, y1, x2, y2] """

    def __init__(self, minimalSolver=SolverHomographyFourPoint, nonMinimalSolver=SolverHomographyFourPoint,
                 normalize_subset=True):
        super().__init__(minimalSolver, nonMinimalSolver)
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
        normalized_src, normalizing_transform_source = normalizePoints(rows[:, 0:2])
        normalized_dst, normalizing_transform_destination = normalizePoints(rows[:, 2:4])

        models = solver.estimateModel(np.c_[normalized_src, normalized_dst],
                                      None,
                                      sample_number,
                                      weights=weights)
        # 单应矩阵的反归一化
        return [Homography(np.linalg.inv(normalizing_transform_destination)
                           @ model.descriptor
                           @ normalizing_transform_source) for model in models]

    def _computeResiduals(self, data, model):
        """ 源点变换后与目标点的距离 """
        transformed = model.transform(data[:, 0:2])
        return np.linalg.norm(data[:, 2:4] - transformed, axis=1)

    def isValidSample(self, data, sample):
        """ 在计算模型参数之前判断所选样本是否退化

        检查朝向约束：样本点相对任意两点连线的位置，在两幅图像中要么全部一致，
        要么全部相反（保持或翻转朝向的单应），混合时样本不可能由单应矩阵解释。
        """
        if not super().isValidSample(data, sample):
            return False

        a = data[sample[0]]
        b = data[sample[1]]
        c = data[sample[2]]
        d = data[sample[3]]

        p = self.__cross_product(a[0:2], b[0:2])
        q = self.__cross_product(a[2:4], b[2:4])
        orientations = [(p[0] * c[0] + p[1] * c[1] + p[2]) * (q[0] * c[2] + q[1] * c[3] + q[2]),
                        (p[0] * d[0] + p[1] * d[1] + p[2]) * (q[0] * d[2] + q[1] * d[3] + q[2])]

        p = self.__cross_product(c[0:2], d[0:2])
        q = self.__cross_product(c[2:4], d[2:4])
        orientations += [(p[0] * a[0] + p[1] * a[1] + p[2]) * (q[0] * a[2] + q[1] * a[3] + q[2]),
                         (p[0] * b[0] + p[1] * b[1] + p[2]) * (q[0] * b[2] + q[1] * b[3] + q[2])]

        return not (min(orientations) < 0 < max(orientations))

    def __cross_product(self, vector1, vector2):
        """ 过两点直线的齐次系数 """
        result = np.zeros(3)
        result[0] = vector1[1] - vector2[1]
        result[1] = vector2[0] - vector1[0]
        result[2] = vector1[0] * vector2[1] - vector1[1] * vector2[0]
        return result
