import numpy as np

from ..model import Homography
from .refiner import Refiner


class HomographyRefiner(Refiner):
    """ 单应矩阵细化，残差为目标图像中的转移误差 (dx, dy) """

    def minimumInlierNumber(self):
        return 4

    def _parameters(self, model):
        return model.descriptor.ravel()

    def _model(self, parameters):
        return Homography(parameters.reshape((3, 3)))

    def _residuals(self, data, parameters):
        matrix = parameters.reshape((3, 3))
        projected = np.c_[data[:, 0:2], np.ones(data.shape[0])] @ matrix.T
        transformed = projected[:, 0:2] / projected[:, 2:3]
        return (transformed - data[:, 2:4]).ravel()
