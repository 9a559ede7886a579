import numpy as np

from ..model import CoordinatesType, Point3D
from .refiner import Refiner


class Point3DRefiner(Refiner):
    """ 由平面交点求得的三维点的细化，残差为点到各平面的有符号距离 """

    def __init__(self, coordinates_type=CoordinatesType.INHOMOGENEOUS, **kwargs):
        super().__init__(**kwargs)
        self.coordinates_type = coordinates_type
        self.homogeneous = coordinates_type == CoordinatesType.HOMOGENEOUS

    def minimumInlierNumber(self):
        return 3

    def _parameters(self, model):
        if self.homogeneous:
            return model.homogeneous()
        return model.inhomogeneous()

    def _model(self, parameters):
        return Point3D(parameters)

    def _residuals(self, data, parameters):
        point = parameters if self.homogeneous else np.r_[parameters, 1.0]
        normal_norms = np.linalg.norm(data[:, 0:3], axis=1)
        return (data @ point) / (normal_norms * point[3])
