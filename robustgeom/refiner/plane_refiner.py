from ..model import Plane
from .refiner import Refiner


class PlaneRefiner(Refiner):
    """ 平面细化，残差为各点到平面的有符号距离 """

    def minimumInlierNumber(self):
        return 3

    def _parameters(self, model):
        return model.descriptor

    def _model(self, parameters):
        return Plane(parameters)

    def _residuals(self, data, parameters):
        return Plane(parameters).signedDistance(data)
