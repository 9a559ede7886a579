import numpy as np

from ..model import ProjectiveTransformation3D
from .solver_engine import SolverEngine


class SolverProjectiveTransformation3DFivePlane(SolverEngine):
	""" 五对平面求解三维射影变换

	平面按 π2 ~ T^-T π1 变换，记 M = T^T，则 M π2 与 π1 共线。
	每对平面以 π1 中绝对值最大的分量为主元，得到三个独立的线性方程。
	"""

	def __init__(self):
		super().__init__()

	def sampleSize(self):
		""" 模型参数估计所需的最小样本数 """
		return 5

	def estimateModel(self,
					  points,
					  sample,
					  sample_number,
					  weights=None):
		""" 求解平面对应的射影变换

		参数
		----------
		points : numpy
			(N,8) 平面对 [π1, π2]
		sample : list
			用于估计模型的样本序号列表
		sample_number : int
			样本平面对的数目
		weights : list
			平面对对应的权重

		返回
		----------
		list(ProjectiveTransformation3D)
			射影变换，退化时为空
		"""
		if sample_number < self.sampleSize():
			return []
		rows, row_weights = self._selectRows(points, sample, sample_number, weights)

		coefficients = np.zeros([3 * sample_number, 16])
		row_idx = 0
		for i in range(sample_number):
			plane1 = rows[i, 0:4] / np.linalg.norm(rows[i, 0:4])
			plane2 = rows[i, 4:8] / np.linalg.norm(rows[i, 4:8])
			pivot = int(np.argmax(np.abs(plane1)))
			for j in range(4):
				if j == pivot:
					continue
				# plane1[pivot] * (M π2)_j - plane1[j] * (M π2)_pivot = 0
				coefficients[row_idx, 4 * j:4 * j + 4] = plane1[pivot] * plane2
				coefficients[row_idx, 4 * pivot:4 * pivot + 4] = -plane1[j] * plane2
				coefficients[row_idx] *= row_weights[i]
				row_idx += 1

		m = self._nullVector(coefficients, 15)
		if m is None:
			return []
		transformation = m.reshape((4, 4)).T
		if abs(np.linalg.det(transformation)) < self.RANK_TOLERANCE:
			return []
		return [ProjectiveTransformation3D(transformation)]
