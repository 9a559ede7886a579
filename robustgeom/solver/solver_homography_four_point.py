import numpy as np

from ..model import Homography
from .solver_engine import SolverEngine


class SolverHomographyFourPoint(SolverEngine):
	""" 四点法求解单应矩阵模型参数 """

	def __init__(self):
		super().__init__()

	def sampleSize(self):
		""" 模型参数估计所需的最小样本数 """
		return 4

	def estimateModel(self,
					  points,
					  sample,
					  sample_number,
					  weights=None):
		""" 从给定的样本点，加权拟合模型参数

		参数
		----------
		points : numpy
			(N,4) 点对 [x1, y1, x2, y2]
		sample : list
			用于估计模型的样本点序号列表
		sample_number : int
			样本点的数目
		weights : list
			数据点集中点的对应权重

		返回
		----------
		list(Homography)
			通过样本估计的模型列表
		"""
		if sample_number < self.sampleSize():
			return []
		rows, row_weights = self._selectRows(points, sample, sample_number, weights)

		coefficients = np.zeros([2 * sample_number, 9])
		for i in range(sample_number):
			x1, y1, x2, y2 = rows[i]
			weight = row_weights[i]

			# 参数矩阵设置，h33 作为未知数参与求解
			coefficients[2 * i] = np.array(
				[-x1, -y1, -1, 0, 0, 0, x2 * x1, x2 * y1, x2]) * weight
			coefficients[2 * i + 1] = np.array(
				[0, 0, 0, -x1, -y1, -1, y2 * x1, y2 * y1, y2]) * weight

		# 系数矩阵 coefficients 的零空间即为 h
		h = self._nullVector(coefficients, 8)
		if h is None:
			return []
		return [Homography(matrix=h.reshape((3, 3)))]
