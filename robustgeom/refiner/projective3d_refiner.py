import numpy as np

from ..model import ProjectiveTransformation3D
from .refiner import Refiner


class ProjectiveTransformation3DRefiner(Refiner):
    """ 三维射影变换细化

    平面按 T^-T 变换，残差为变换后的单位平面与对应单位平面的差（对齐符号后）。
    """

    def minimumInlierNumber(self):
        return 5

    def _parameters(self, model):
        return model.descriptor.ravel()

    def _model(self, parameters):
        return ProjectiveTransformation3D(parameters.reshape((4, 4)))

    def _residuals(self, data, parameters):
        matrix = parameters.reshape((4, 4))
        try:
            transformed = data[:, 0:4] @ np.linalg.inv(matrix)
        except np.linalg.LinAlgError:
            return np.full(data.shape[0] * 4, np.inf)
        a = transformed / np.linalg.norm(transformed, axis=1)[:, None]
        b = data[:, 4:8] / np.linalg.norm(data[:, 4:8], axis=1)[:, None]
        signs = np.where(np.sum(a * b, axis=1) < 0.0, -1.0, 1.0)
        return (a - signs[:, None] * b).ravel()
