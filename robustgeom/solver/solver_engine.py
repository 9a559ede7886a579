import numpy as np


class SolverEngine:
    """ 模型参数求解器基类 """

    # 判定线性系统秩亏（退化样本）时使用的相对奇异值阈值
    RANK_TOLERANCE = 1e-10

    def __init__(self):
        pass

    def sampleSize(self):
        """ 模型参数估计所需的最小样本数 """
        return 0

    def estimateModel(self,
                      points,
                      sample,
                      sample_number,
                      weights=None):
        """ 从给定的样本点，加权拟合模型参数

        参数
        ----------
        points : numpy
            输入的数据点集
        sample : list
            用于估计模型的样本点序号列表，None 表示使用前 sample_number 个点
        sample_number : int
            样本点的数目
        weights : list
            数据点集中点的对应权重

        返回
        ----------
        list(Model)
            通过样本估计的模型列表，退化样本返回空列表
        """
        return []

    @staticmethod
    def _selectRows(points, sample, sample_number, weights):
        """ 取出样本行和对应权重 """
        if sample is None:
            sample = list(range(sample_number))
        rows = np.asarray(points, dtype=np.float64)[list(sample[:sample_number])]
        if weights is None:
            row_weights = np.ones(sample_number)
        else:
            row_weights = np.asarray(weights, dtype=np.float64)[list(sample[:sample_number])]
        return rows, row_weights

    def _nullVector(self, coefficients, rank):
        """ 通过 SVD 求解齐次线性系统 A x = 0

        参数
        ----------
        coefficients : numpy
            系数矩阵 A
        rank : int
            非退化时 A 应有的秩

        返回
        ----------
        numpy or None
            最小奇异值对应的右奇异向量，秩亏时返回 None
        """
        if not np.all(np.isfinite(coefficients)):
            return None
        _, singular_values, vt = np.linalg.svd(coefficients, full_matrices=True)
        if singular_values.shape[0] < rank or singular_values[0] == 0.0:
            return None
        # 第 rank 个奇异值过小说明样本退化
        if singular_values[rank - 1] / singular_values[0] < self.RANK_TOLERANCE:
            return None
        return vt[-1]
