import numpy as np

from ..model import PinholeCamera
from .solver_engine import SolverEngine


class SolverPinholeCameraDLT(SolverEngine):
	""" DLT 直接线性变换求解针孔相机 """

	def __init__(self):
		super().__init__()

	def sampleSize(self):
		""" 模型参数估计所需的最小样本数 """
		return 6

	def estimateModel(self,
					  points,
					  sample,
					  sample_number,
					  weights=None):
		""" 从 3D-2D 点对应估计相机矩阵

		参数
		----------
		points : numpy
			(N,5) 点对应 [X, Y, Z, u, v]
		sample : list
			用于估计模型的样本序号列表
		sample_number : int
			样本点的数目
		weights : list
			点对应的权重

		返回
		----------
		list(PinholeCamera)
			估计的相机，退化（如三维点共面）时为空
		"""
		if sample_number < self.sampleSize():
			return []
		rows, row_weights = self._selectRows(points, sample, sample_number, weights)

		coefficients = np.zeros([2 * sample_number, 12])
		for i in range(sample_number):
			point3d = np.r_[rows[i, 0:3], 1.0]
			u, v = rows[i, 3], rows[i, 4]
			weight = row_weights[i]

			# u * (p3 X) - (p1 X) = 0, v * (p3 X) - (p2 X) = 0
			coefficients[2 * i, 0:4] = -point3d * weight
			coefficients[2 * i, 8:12] = u * point3d * weight
			coefficients[2 * i + 1, 4:8] = -point3d * weight
			coefficients[2 * i + 1, 8:12] = v * point3d * weight

		p = self._nullVector(coefficients, 11)
		if p is None:
			return []
		matrix = p.reshape((3, 4))
		if abs(np.linalg.det(matrix[:, 0:3])) < self.RANK_TOLERANCE:
			return []
		return [PinholeCamera(matrix)]
