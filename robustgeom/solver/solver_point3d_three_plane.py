import numpy as np

from ..model import Point3D
from .solver_engine import SolverEngine


class SolverPoint3DThreePlane(SolverEngine):
	""" 三平面求交点，多于三个平面时求最小二乘交点 """

	def __init__(self):
		super().__init__()

	def sampleSize(self):
		""" 模型参数估计所需的最小样本数 """
		return 3

	def estimateModel(self,
					  points,
					  sample,
					  sample_number,
					  weights=None):
		""" 求解样本平面的公共交点

		参数
		----------
		points : numpy
			(N,4) 平面系数 [a, b, c, d]
		sample : list
			用于估计模型的样本序号列表
		sample_number : int
			样本平面的数目
		weights : list
			平面对应的权重

		返回
		----------
		list(Point3D)
			交点，平面平行或交于一条直线时为空
		"""
		if sample_number < self.sampleSize():
			return []
		planes, row_weights = self._selectRows(points, sample, sample_number, weights)

		# 每个平面归一化法向量后加权，得到 A X = 0
		normal_norms = np.linalg.norm(planes[:, 0:3], axis=1)
		if np.any(normal_norms == 0.0):
			return []
		coefficients = planes / normal_norms[:, None] * row_weights[:, None]

		homogeneous_point = self._nullVector(coefficients, 3)
		if homogeneous_point is None:
			return []
		# 法向量共面时交点位于无穷远
		if abs(homogeneous_point[3]) < self.RANK_TOLERANCE:
			return []
		return [Point3D(homogeneous_point)]
