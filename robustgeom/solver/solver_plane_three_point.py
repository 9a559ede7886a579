import numpy as np

from ..model import Plane
from .solver_engine import SolverEngine


class SolverPlaneThreePoint(SolverEngine):
	""" 三点确定平面，多于三个点时求最小二乘平面 """

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
		""" 拟合通过样本点的平面

		参数
		----------
		points : numpy
			(N,3) 三维点
		sample : list
			用于估计模型的样本序号列表
		sample_number : int
			样本点的数目
		weights : list
			点对应的权重

		返回
		----------
		list(Plane)
			拟合的平面，点共线时为空
		"""
		if sample_number < self.sampleSize():
			return []
		rows, row_weights = self._selectRows(points, sample, sample_number, weights)

		coefficients = np.c_[rows, np.ones(sample_number)] * row_weights[:, None]
		plane = self._nullVector(coefficients, 3)
		if plane is None:
			return []
		normal_norm = np.linalg.norm(plane[0:3])
		if normal_norm < self.RANK_TOLERANCE:
			return []
		return [Plane(plane / normal_norm)]
